"""Context-gathering modules for building a release section.

These modules talk to the outside world (the local git repository and
GitHub's GraphQL API) and turn what they find into the structured data
the renderer works with.
"""
