from __future__ import annotations


SCHEMA_VERSION = "1.0.0"
COMPATIBLE_VERSIONS = ("1.x.x",)


def _major(version: str | None) -> str:
    return str(version or "").strip().split(".")[0]


def is_compatible_version(version: str | None) -> bool:
    if not str(version or "").strip():
        return False
    return _major(version) in {_major(item) for item in COMPATIBLE_VERSIONS}


def validate_schema_compatibility(required_version: str | None = None) -> None:
    if required_version and not is_compatible_version(required_version):
        raise RuntimeError(
            f"Schema version incompatible. Current: {SCHEMA_VERSION}, Required: {required_version}"
        )
