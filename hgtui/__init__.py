"""Terminal client for browsing the HelloGitHub periodical."""

__version__ = "0.2.0"
