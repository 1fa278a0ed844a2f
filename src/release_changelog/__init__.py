"""Release changelog generator.

Scans git history for merged pull requests since the last release tag,
fetches their metadata from GitHub's GraphQL API, classifies them into
Added / Changed / Fixed, and prepends a new release section to CHANGELOG.md.
"""

__version__ = "0.1.0"
