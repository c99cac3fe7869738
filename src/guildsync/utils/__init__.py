"""Helpers with no dependency on the core or services layers."""

from .http import read_bounded, read_bounded_json


__all__ = ["read_bounded", "read_bounded_json"]
