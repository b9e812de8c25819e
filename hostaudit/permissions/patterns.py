"""
Permission pattern expressions.

Patterns are written in the syntax of ``find -perm``:

    MODE   the permission bits are exactly MODE
    -MODE  all of the bits in MODE are set
    /MODE  any of the bits in MODE is set (an empty MODE matches everything)

MODE is either octal (``777``, ``4000``) or symbolic (``o+w``, ``u=rwx,g+s``).
Symbolic modes start from 000, as find does.
"""

import re
import stat
from dataclasses import dataclass
from enum import Enum
from typing import Any


class MatchKind(Enum):
    """How a mode is compared against a file's permission bits."""

    EXACT = "exact"
    ALL = "all"
    ANY = "any"


_PREFIXES = {"-": MatchKind.ALL, "/": MatchKind.ANY}

_SYMBOLIC_CLAUSE = re.compile(r"^([ugoa]*)((?:[-+=][rwxst]*)+)$")
_SYMBOLIC_OP = re.compile(r"([-+=])([rwxst]*)")

_PERM_BITS = {
    ("u", "r"): stat.S_IRUSR,
    ("u", "w"): stat.S_IWUSR,
    ("u", "x"): stat.S_IXUSR,
    ("u", "s"): stat.S_ISUID,
    ("g", "r"): stat.S_IRGRP,
    ("g", "w"): stat.S_IWGRP,
    ("g", "x"): stat.S_IXGRP,
    ("g", "s"): stat.S_ISGID,
    ("o", "r"): stat.S_IROTH,
    ("o", "w"): stat.S_IWOTH,
    ("o", "x"): stat.S_IXOTH,
    ("o", "t"): stat.S_ISVTX,
}


def _who_mask(who: str) -> int:
    """All bits an '=' assignment clears for the given class."""
    return sum(bit for (cls, _), bit in _PERM_BITS.items() if cls == who)


def _bits_for(whos: str, perms: str) -> int:
    bits = 0
    for who in whos:
        for perm in perms:
            if perm == "t":
                # sticky belongs to no single class; any 'who' may name it
                bits |= stat.S_ISVTX
            else:
                bits |= _PERM_BITS.get((who, perm), 0)
    return bits


def parse_symbolic_mode(text: str) -> int:
    """Convert a symbolic mode such as ``u=rwx,g+w`` to its bits, starting from 000."""
    mode = 0
    for clause in text.split(","):
        match = _SYMBOLIC_CLAUSE.match(clause)
        if not match:
            raise ValueError(f"Invalid symbolic mode: {text!r}")
        whos = match.group(1).replace("a", "ugo") or "ugo"
        for op, perms in _SYMBOLIC_OP.findall(match.group(2)):
            bits = _bits_for(whos, perms)
            if op == "+":
                mode |= bits
            elif op == "-":
                mode &= ~bits
            else:
                for who in whos:
                    mode &= ~_who_mask(who)
                mode |= bits
    return mode


def parse_mode(text: str) -> int:
    """Parse an octal or symbolic mode."""
    if not text:
        raise ValueError("Empty permission mode")
    if text.isdigit():
        if any(ch not in "01234567" for ch in text):
            raise ValueError(f"Invalid octal mode: {text!r}")
        value = int(text, 8)
        if value > 0o7777:
            raise ValueError(f"Octal mode out of range: {text!r}")
        return value
    return parse_symbolic_mode(text)


@dataclass(frozen=True)
class PermExpression:
    """A parsed ``find -perm`` expression."""

    text: str
    bits: int
    kind: MatchKind

    @classmethod
    def parse(cls, text: str) -> "PermExpression":
        if not isinstance(text, str):
            raise ValueError(f"Permission expression must be a string, got {text!r}")
        text = text.strip()
        kind = _PREFIXES.get(text[:1], MatchKind.EXACT)
        body = text[1:] if kind is not MatchKind.EXACT else text
        return cls(text=text, bits=parse_mode(body), kind=kind)

    def matches(self, mode: int) -> bool:
        perm = stat.S_IMODE(mode)
        if self.kind is MatchKind.EXACT:
            return perm == self.bits
        if self.kind is MatchKind.ALL:
            return perm & self.bits == self.bits
        return self.bits == 0 or bool(perm & self.bits)


@dataclass(frozen=True)
class PermissionPattern:
    """A named weak-permission predicate with an optional exclusion."""

    name: str
    perm: PermExpression
    exclude: PermExpression | None = None

    def matches(self, mode: int) -> bool:
        if not self.perm.matches(mode):
            return False
        return self.exclude is None or not self.exclude.matches(mode)

    @classmethod
    def from_entry(cls, entry: Any) -> "PermissionPattern":
        """Build a pattern from a config entry: a bare expression or a mapping."""
        if isinstance(entry, str):
            return cls(name=entry.strip(), perm=PermExpression.parse(entry))

        if not isinstance(entry, dict):
            raise ValueError(f"Pattern must be a string or mapping, got {entry!r}")

        unknown = set(entry) - {"name", "perm", "exclude"}
        if unknown:
            raise ValueError(f"Unknown pattern key(s): {', '.join(sorted(unknown))}")
        if "perm" not in entry:
            raise ValueError(f"Pattern is missing 'perm': {entry!r}")

        perm = PermExpression.parse(entry["perm"])
        exclude = PermExpression.parse(entry["exclude"]) if entry.get("exclude") else None
        return cls(name=str(entry.get("name") or perm.text), perm=perm, exclude=exclude)


def load_patterns(entries: list) -> list[PermissionPattern]:
    """Parse configured pattern entries, keeping their order."""
    return [PermissionPattern.from_entry(entry) for entry in entries]
