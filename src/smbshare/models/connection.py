"""
Connection identity models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """User/password credential for NTLM or Kerberos authentication."""

    model_config = ConfigDict(frozen=True)

    user: str = "guest"
    domain: str = ""
    password: str = Field(default="", repr=False)

    @classmethod
    def from_user_string(
        cls,
        user: str | None,
        password: str | None = None,
        default_user: str = "guest",
    ) -> "Credential":
        """
        Build a credential from a ``user`` or ``DOMAIN\\user`` string.

        Strings with more than one backslash are not split and fall back
        to ``default_user``.

        Example:
            >>> Credential.from_user_string("CORP\\\\alice", "s3cret").domain
            'CORP'
        """
        domain = ""
        name = default_user
        if user:
            parts = user.split("\\")
            if len(parts) == 1:
                name = parts[0] or default_user
            elif len(parts) == 2:
                domain, name = parts
                name = name or default_user
        return cls(user=name, domain=domain, password=password or "")

    @property
    def qualified_user(self) -> str:
        """User name as the authentication layer expects it."""
        if self.domain:
            return f"{self.domain}\\{self.user}"
        return self.user
