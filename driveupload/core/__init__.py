"""Core upload engine and Drive API collaborators."""
