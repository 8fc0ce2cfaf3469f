"""Thin wrapper around PyGithub for authenticated GitHub API access."""

from __future__ import annotations

from github import Auth, Github
from github.Repository import Repository

from hyouji.config import DEFAULT_API_URL


class GitHubClient:
    """Authenticated GitHub client scoped to a single repository.

    Usage:
        client = GitHubClient(token="ghp_...", owner="octocat", repo="hello-world")
        login = client.authenticated_login()  # GET /user
        repo = client.repo  # PyGithub Repository object
    """

    def __init__(
        self, token: str, owner: str, repo: str, base_url: str = DEFAULT_API_URL
    ) -> None:
        self._gh = Github(auth=Auth.Token(token), base_url=base_url)
        self.owner = owner
        self.repo_name = repo
        self._repo: Repository | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"

    @property
    def repo(self) -> Repository:
        # lazy=True builds the URL without a GET /repos round trip
        if self._repo is None:
            self._repo = self._gh.get_repo(self.full_name, lazy=True)
        return self._repo

    def authenticated_login(self) -> str:
        """Return the login of the token's owner (GET /user)."""
        return self._gh.get_user().login

    def close(self) -> None:
        self._gh.close()


def fetch_authenticated_login(token: str, base_url: str = DEFAULT_API_URL) -> str:
    """Resolve a token to its GitHub login without binding a repository."""
    gh = Github(auth=Auth.Token(token), base_url=base_url)
    try:
        return gh.get_user().login
    finally:
        gh.close()
