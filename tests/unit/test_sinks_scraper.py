"""
Unit tests for item extraction, delivery and the candidate sinks.
"""

import asyncio
import json

import pytest
from pydantic import ValidationError

from src.core.exceptions import DeliveryFailure, ElementNotFound
from src.db.sinks import JsonlCandidateSink, MultiSink, SupabaseCandidateSink
from src.db.supabase_client import is_auth_rejection
from src.scraping.extractor import SelectorFieldExtractor
from src.scraping.models import CandidateRecord, ScrapeStatus
from src.scraping.scraper import DeliveringItemScraper
from src.traversal.state import SourceTag
from tests.conftest import FakeScope, hw_item

HW_TITLE = "Jean Martin - Développeur Python - HelloWork"
LI_PROFILE = "https://www.linkedin.com/talent/hire/77/manage/all/profile/AAA?project=9"


def _title(value):
    async def title():
        return value
    return title


def _hellowork_scope(email="jean.martin@example.fr", tel="+33 6 12 34 56 78"):
    reveals = {}
    if email is not None:
        reveals["#contactEmail"] = {"#emailToApplicant": {"to": email}}
    if tel is not None:
        reveals["hw-button#contactTel"] = {"tel-contact#telContact": {"tel": tel}}
    tools = FakeScope(
        elements={"#contactEmail": {}, "#close": {}, "hw-button#contactTel": {}},
        reveals=reveals,
    )
    return FakeScope({"#documentViewer": {}}, shadows={"#tools > contact-workflow": tools}), tools


def _linkedin_scope(linkedin, email=" lea.petit@example.com ", phone=None):
    elements = {linkedin.name_source: {"title": "Add Note about Léa Petit"}}
    if email is not None:
        elements["span[data-test-contact-email-address]"] = {"text": email}
    if phone is not None:
        elements["span[data-test-contact-phone][data-live-test-contact-phone]"] = {"text": phone}
    return FakeScope(elements)


def _record(**overrides):
    data = dict(first_name="Jean", last_name="Martin", email="jean@example.fr", phone="0612345678",
                source="hellowork", source_tag=SourceTag.ANNONCE, origin_code="17", profile_url=hw_item(1))
    data.update(overrides)
    return CandidateRecord(**data)


class TestCandidateRecord:
    def test_enum_stored_as_value(self):
        assert _record().to_row()["source_tag"] == "annonce"

    def test_blank_email_becomes_none(self):
        assert _record(email="   ").email is None

    @pytest.mark.parametrize("phone", ["612345678", "+33612345678", "06 12 34 56 78"])
    def test_phone_must_be_national(self, phone):
        with pytest.raises(ValidationError):
            _record(phone=phone)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            _record(first_name="  ")


class TestSelectorFieldExtractor:
    """Extraction against in-memory scopes."""

    def test_hellowork_fields_behind_shadow_host(self, hellowork):
        """Test that email and phone are revealed, read and the panel closed."""
        scope, tools = _hellowork_scope()
        extractor = SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE))

        record = asyncio.run(extractor.extract(SourceTag.ANNONCE, hw_item(1)))

        assert (record.first_name, record.last_name) == ("Jean", "Martin")
        assert record.email == "jean.martin@example.fr"
        assert record.phone == "0612345678"
        assert record.origin_code == "17"
        assert record.source == "hellowork"
        assert record.profile_url == hw_item(1)
        assert tools.clicked == ["#contactEmail", "#close", "hw-button#contactTel"]
        assert "#emailToApplicant" not in tools.elements

    def test_missing_email_uses_placeholder(self, hellowork):
        scope, _ = _hellowork_scope(email=None)
        extractor = SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE))

        record = asyncio.run(extractor.extract(SourceTag.CHASSE, hw_item(1)))

        assert record.email == "Jean_Martin@hellowork.com"
        assert record.origin_code == "14"

    def test_missing_shadow_host_leaves_optional_fields_empty(self, hellowork):
        scope = FakeScope({"#documentViewer": {}})
        extractor = SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE))

        record = asyncio.run(extractor.extract(None, hw_item(1)))

        assert record.phone is None
        assert record.email == "Jean_Martin@hellowork.com"
        assert record.origin_code is None

    def test_foreign_phone_dropped(self, hellowork):
        scope, _ = _hellowork_scope(tel="+44 20 7946 0958")
        record = asyncio.run(SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE)).extract(None, hw_item(1)))
        assert record.phone is None

    def test_item_not_ready(self, hellowork):
        extractor = SelectorFieldExtractor(hellowork, FakeScope(), _title(HW_TITLE))
        with pytest.raises(ElementNotFound):
            asyncio.run(extractor.extract(None, hw_item(1)))

    def test_name_not_in_title(self, hellowork):
        scope, _ = _hellowork_scope()
        extractor = SelectorFieldExtractor(hellowork, scope, _title("HelloWork Recruteur"))
        with pytest.raises(ElementNotFound, match="Candidate name not found"):
            asyncio.run(extractor.extract(None, hw_item(1)))

    def test_linkedin_name_from_note_button(self, linkedin):
        scope = _linkedin_scope(linkedin, phone="07 11 22 33 44")
        extractor = SelectorFieldExtractor(linkedin, scope, _title("LinkedIn"))

        record = asyncio.run(extractor.extract(SourceTag.CHASSE, LI_PROFILE))

        assert (record.first_name, record.last_name) == ("Léa", "Petit")
        assert record.email == "lea.petit@example.com"
        assert record.phone == "0711223344"
        assert record.origin_code == "11"

    def test_linkedin_placeholder_email(self, linkedin):
        scope = _linkedin_scope(linkedin, email=None)
        record = asyncio.run(SelectorFieldExtractor(linkedin, scope, _title("")).extract(SourceTag.ANNONCE, LI_PROFILE))
        assert record.email == "@linkedin.com Léa_Petit"
        assert record.origin_code == "4"


class TestDeliveringItemScraper:
    """Mapping of extraction and delivery outcomes to scrape results."""

    def test_success_writes_jsonl(self, hellowork, test_output_dir):
        scope, _ = _hellowork_scope()
        sink = JsonlCandidateSink(test_output_dir)
        scraper = DeliveringItemScraper(SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE)),
                                        sink, lambda: hw_item(1), "hellowork")

        result = asyncio.run(scraper.scrape(SourceTag.ANNONCE))

        assert result.status is ScrapeStatus.SUCCESS
        assert result.fields["email"] == "jean.martin@example.fr"
        lines = sink.path_for_today().read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[0])["profile_url"] == hw_item(1)

    def test_missing_element_is_failed(self, hellowork, test_output_dir):
        scraper = DeliveringItemScraper(SelectorFieldExtractor(hellowork, FakeScope(), _title(HW_TITLE)),
                                        JsonlCandidateSink(test_output_dir), lambda: hw_item(1), "hellowork")

        result = asyncio.run(scraper.scrape(None))

        assert result.status is ScrapeStatus.ERROR
        assert "#documentViewer" in result.error

    def test_invalid_record_is_failed(self, hellowork, test_output_dir, tmp_path):
        scope, _ = _hellowork_scope(email="x" * 400)
        scraper = DeliveringItemScraper(SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE)),
                                        JsonlCandidateSink(test_output_dir), lambda: hw_item(1), "hellowork")

        result = asyncio.run(scraper.scrape(None))

        assert result.status is ScrapeStatus.ERROR
        assert result.error.startswith("Invalid candidate record")

    def test_auth_rejection_is_login_required(self, hellowork, mock_supabase_client):
        mock_supabase_client.table("candidates").error = Exception("401 Unauthorized: JWT expired")
        scope, _ = _hellowork_scope()
        scraper = DeliveringItemScraper(SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE)),
                                        SupabaseCandidateSink(client=mock_supabase_client),
                                        lambda: hw_item(1), "hellowork")

        result = asyncio.run(scraper.scrape(SourceTag.ANNONCE))

        assert result.status is ScrapeStatus.LOGIN_REQUIRED

    def test_other_delivery_failure_is_failed(self, hellowork, mock_supabase_client):
        mock_supabase_client.table("candidates").error = Exception("connection reset")
        scope, _ = _hellowork_scope()
        scraper = DeliveringItemScraper(SelectorFieldExtractor(hellowork, scope, _title(HW_TITLE)),
                                        SupabaseCandidateSink(client=mock_supabase_client),
                                        lambda: hw_item(1), "hellowork")

        assert asyncio.run(scraper.scrape(None)).status is ScrapeStatus.ERROR


class TestSinks:
    """Test the sink implementations."""

    def test_supabase_upsert_on_profile_url(self, mock_supabase_client):
        SupabaseCandidateSink(client=mock_supabase_client).deliver(_record())

        table = mock_supabase_client.table("candidates")
        assert table.on_conflict == "profile_url"
        assert table.data[0]["profile_url"] == hw_item(1)

    def test_supabase_not_configured(self, monkeypatch):
        monkeypatch.setattr("src.db.sinks.get_supabase", lambda: None)
        with pytest.raises(DeliveryFailure, match="not configured"):
            SupabaseCandidateSink().deliver(_record())

    def test_jsonl_unwritable_dir(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(DeliveryFailure):
            JsonlCandidateSink(blocker / "out").deliver(_record())

    def test_multi_sink_tries_all_then_raises(self, test_output_dir, mock_supabase_client):
        mock_supabase_client.table("candidates").error = Exception("503 Service Unavailable")
        jsonl = JsonlCandidateSink(test_output_dir)
        sink = MultiSink([SupabaseCandidateSink(client=mock_supabase_client), jsonl])

        with pytest.raises(DeliveryFailure) as exc_info:
            sink.deliver(_record())

        assert exc_info.value.login_required is False
        assert jsonl.path_for_today().exists()


class TestAuthRejection:
    """Test recognising refused credentials."""

    class CodedError(Exception):
        def __init__(self, code):
            super().__init__(f"error {code}")
            self.code = code

    @pytest.mark.parametrize("exc,expected", [
        (CodedError("PGRST301"), True),
        (CodedError("42501"), True),
        (Exception({"code": "PGRST302", "message": "JWT expired"}), True),
        (Exception("HTTP 403 Forbidden"), True),
        (Exception("timeout after 4010ms"), False),
        (CodedError("23505"), False),
    ])
    def test_is_auth_rejection(self, exc, expected):
        assert is_auth_rejection(exc) is expected
