"""HTTP surface for the share-of-voice engine."""
