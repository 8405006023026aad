"""Merging of cluster specs: non-empty source values override the destination."""

from __future__ import annotations

import copy
from dataclasses import fields
from typing import Any

from clusterregistry.registry import ClusterSpec, Model, Tier


def merge_spec(dst: ClusterSpec, src: ClusterSpec) -> ClusterSpec:
    """Merge ``src`` into ``dst`` in place and return ``dst``.

    Non-empty values of ``src`` replace those of ``dst``; maps are merged key
    by key; tiers already in ``dst`` are merged with the source tier of the
    same name, and source tiers not found in ``dst`` are ignored.
    """
    if not isinstance(dst, ClusterSpec) or not isinstance(src, ClusterSpec):
        raise TypeError("both arguments must be ClusterSpec instances")
    _merge_model(dst, src, override=True, append=False)
    return dst


def merge_tiers(dst: list[Tier], src: list[Tier]) -> list[Tier]:
    """Fill empty fields of each ``dst`` tier from the ``src`` tier of the same name.

    Taints and other lists are appended; tiers of ``src`` with no match are skipped.
    """
    for incoming in src:
        target = next((tier for tier in dst if tier.name == incoming.name), None)
        if target is None:
            continue
        _merge_model(target, incoming, override=False, append=True)
    return dst


def _is_tier_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(
        isinstance(item, Tier) for item in value
    )


def _merge_model(dst: Model, src: Model, *, override: bool, append: bool) -> None:
    for f in fields(dst):
        current = getattr(dst, f.name)
        incoming = getattr(src, f.name)
        if _is_tier_list(current):
            merge_tiers(current, incoming or [])
            continue
        setattr(dst, f.name, _merge_value(current, incoming, override=override, append=append))


def _merge_value(dst: Any, src: Any, *, override: bool, append: bool) -> Any:
    if src is None:
        return dst
    if dst is None:
        return copy.deepcopy(src)
    if isinstance(src, Model):
        _merge_model(dst, src, override=override, append=append)
        return dst
    if isinstance(src, dict):
        return _merge_map(dst, src, override=override, append=append)
    if isinstance(src, list):
        if append:
            return dst + copy.deepcopy(src)
        if src and (override or not dst):
            return copy.deepcopy(src)
        return dst
    if src and (override or not dst):
        return src
    return dst


def _merge_map(dst: dict, src: dict, *, override: bool, append: bool) -> dict:
    for key, value in src.items():
        current = dst.get(key)
        if isinstance(value, dict):
            if isinstance(current, dict) and current:
                _merge_map(current, value, override=override, append=append)
            else:
                dst[key] = copy.deepcopy(value)
        elif isinstance(value, list):
            if append:
                dst[key] = list(current or []) + copy.deepcopy(value)
            elif override or not current:
                dst[key] = copy.deepcopy(value)
        elif override or not current:
            dst[key] = value
    return dst