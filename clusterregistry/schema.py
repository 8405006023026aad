"""API group, version and kind identifiers."""

from __future__ import annotations

from dataclasses import dataclass


class SchemaError(ValueError):
    """Raised when an identifier or document does not fit the expected schema."""


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with one of its versions."""

    group: str = ""
    version: str = ""

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(self.group, self.version, kind)

    def __str__(self) -> str:
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version


@dataclass(frozen=True)
class GroupVersionKind:
    """An API group, version and kind."""

    group: str = ""
    version: str = ""
    kind: str = ""

    def group_version(self) -> GroupVersion:
        return GroupVersion(self.group, self.version)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}, Kind={self.kind}"


def parse_group_version(text: str) -> GroupVersion:
    """Parse ``group/version`` or a bare ``version`` into a GroupVersion."""
    if not text or text == "/":
        return GroupVersion()
    slashes = text.count("/")
    if slashes == 0:
        return GroupVersion("", text)
    if slashes == 1:
        group, version = text.split("/")
        return GroupVersion(group, version)
    raise SchemaError(f"unexpected GroupVersion string: {text}")