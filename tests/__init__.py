"""
candidate-walker test suite.

Structure:
- unit/: fast tests with no browser or network; page, navigator, scope
  and Supabase collaborators are the fakes defined in conftest.py
"""
