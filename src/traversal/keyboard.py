"""
Keyboard adapter for the Control Signal Channel.

Ctrl+Alt+P toggles pause, Ctrl+Alt+S stops. The listener is installed as an
init script so it survives every navigation of the page.
"""

from playwright.async_api import Page

from src.core.logging import get_logger
from src.traversal.control import ControlCommand, ControlSignalChannel

logger = get_logger(__name__)

BINDING_NAME = "__walkerControl"

STOP_MESSAGE = "The traversal will stop after the current item."

_KEYDOWN_JS = """
(() => {
  if (window.__walkerKeysInstalled) return;
  window.__walkerKeysInstalled = true;
  document.addEventListener('keydown', (event) => {
    if (!(event.ctrlKey && event.altKey)) return;
    const key = (event.key || '').toLowerCase();
    if (key === 'p') {
      event.preventDefault();
      window.%(binding)s('pause-or-resume');
    } else if (key === 's') {
      event.preventDefault();
      window.%(binding)s('stop');
    }
  });
})()
""" % {"binding": BINDING_NAME}


class KeyboardControlBinding:
    """
    Bind page key presses to control commands.

    Args:
        page: Page to listen on
        channel: Channel the commands are sent to
        notifier: Object with async notify(message), told when a stop is accepted
    """

    def __init__(self, page: Page, channel: ControlSignalChannel, notifier=None):
        self.page = page
        self.channel = channel
        self.notifier = notifier

    async def install(self) -> None:
        await self.page.expose_function(BINDING_NAME, self.handle)
        await self.page.add_init_script(_KEYDOWN_JS)
        await self.page.evaluate(_KEYDOWN_JS)
        logger.info("Keyboard controls: Ctrl+Alt+P pause/resume, Ctrl+Alt+S stop")

    async def handle(self, command: str) -> None:
        try:
            cmd = ControlCommand(command)
        except ValueError:
            logger.warning(f"Unknown control command from page: {command!r}")
            return
        state = await self.channel.send(cmd)
        if state is not None and cmd is ControlCommand.STOP and self.notifier is not None:
            await self.notifier.notify(STOP_MESSAGE)
