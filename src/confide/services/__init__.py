"""Services layered over the repositories: identity, feeds, optimistic commands."""
