"""GistDB server - a JSON document store on top of GitHub Gists."""

__version__ = "1.0.0"
