"""
Ebook Kilat - AI-assisted ebook authoring.

Orchestrates outline generation, chapter drafting and illustration generation
against the Gemini API and persists projects to Firestore, falling back to
on-device storage when the hosted database is unreachable.

Services:
- web/app.py (workspace API used by the front-end)
- web/relay.py (thin relay holding the server-side Gemini credential)
"""

__all__ = []

__version__ = "1.0.0"
