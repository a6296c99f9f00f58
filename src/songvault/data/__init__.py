"""Storage components: blob store, codec, repository, lyrics, archive, preferences."""
