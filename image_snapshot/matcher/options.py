"""Merge defaults, registration overrides and call options."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from image_snapshot.models.snapshot import SnapshotOptions


@dataclass(frozen=True)
class Named:
    """Call with an explicit screenshot name and optional per-call options."""

    name: str
    options: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class OptionsOnly:
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NoArg:
    pass


SnapshotArg = Union[Named, OptionsOnly, NoArg]


@dataclass(frozen=True)
class ResolvedCall:
    filename: Optional[str]
    options: SnapshotOptions


def to_snapshot_arg(
    name_or_options: str | Mapping[str, Any] | None = None,
    options: Mapping[str, Any] | None = None,
) -> SnapshotArg:
    """Turn the public ``(name_or_options, options)`` call shape into a SnapshotArg."""
    if isinstance(name_or_options, str):
        return Named(name_or_options, options)
    if name_or_options is not None:
        return OptionsOnly(name_or_options)
    if options is not None:
        return OptionsOnly(options)
    return NoArg()


def deep_merge(*sources: Mapping[str, Any]) -> dict[str, Any]:
    """Merge mappings left to right; nested mappings merge key by key."""
    merged: dict[str, Any] = {}
    for source in sources:
        for key, value in source.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = deep_merge(current, value)
            elif isinstance(value, Mapping):
                merged[key] = deep_merge(value)
            else:
                merged[key] = value
    return merged


def resolve(
    defaults: SnapshotOptions,
    registration_overrides: Mapping[str, Any] | None,
    arg: SnapshotArg,
) -> ResolvedCall:
    """Resolve the screenshot filename and effective options for one call.

    Precedence is defaults < registration overrides < call options. An
    options-only call has no explicit filename.
    """
    base = [defaults.model_dump(), dict(registration_overrides or {})]

    if isinstance(arg, Named):
        filename: Optional[str] = arg.name
        call_options = arg.options
    elif isinstance(arg, OptionsOnly):
        filename = None
        call_options = arg.options
    else:
        filename = None
        call_options = None

    if call_options:
        base.append(dict(call_options))

    options = SnapshotOptions.model_validate(deep_merge(*base))
    return ResolvedCall(filename=filename, options=options)
