"""Cargo manifest generation for scaffolded verification projects."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

SAFEPKT_ASSERT_GIT = "https://git.example.com/safepkt_assert"
TYPE_METADATA_GIT = "https://git.example.com/type-metadata.git"

_INK_VERSION = "2.1.0"
_SAFEPKT_ASSERT_REV = "ddd0f25f291244508b5e32a16c811e1bcda1920b"
_TYPE_METADATA_REV = "02eae9f35c40c943b56af5b60616219f2b72b47d"


def _quote(value: str) -> str:
    return f'"{value}"'


def _list(items: Iterable[str]) -> str:
    return "[" + ", ".join(_quote(item) for item in items) + "]"


def _inline(fields: Iterable[tuple[str, str]], separator: str = " = ") -> str:
    return "{ " + ", ".join(f"{key}{separator}{value}" for key, value in fields) + " }"


def _array(
    items: Iterable[str],
    indent: str,
    *,
    trailing_comma: bool = True,
    comments: Mapping[str, str] | None = None,
) -> str:
    lines = ["["]
    for item in items:
        if comments and item in comments:
            lines.append(f"{indent}# {comments[item]}")
        lines.append(f"{indent}{_quote(item)}" + ("," if trailing_comma else ""))
    lines.append("]")
    return "\n".join(lines)


def _ink_dependency(crate: str, *extra: tuple[str, str]) -> str:
    return _inline(
        [
            ("version", _quote(_INK_VERSION)),
            ("path", _quote(f"../../{crate}")),
            ("default-features", "false"),
            *extra,
        ]
    )


def _patched(version: str, path: str) -> str:
    return _inline([("version", _quote(version)), ("path", _quote(path))])


def make_manifest(package_name: str, rvt_dir_path: str) -> str:
    """Render a Cargo manifest for a package using the verification tools at a path."""
    name = _quote(package_name)
    lines = [
        "",
        "[package]",
        f"name = {name}",
        f"version = {_quote('0.1.0')}",
        f"authors = {_list(['safepkt'])}",
        f"edition = {_quote('2018')}",
        "",
        "[dependencies]",
        "verification-annotations = "
        + _inline([("path", _quote(f"{rvt_dir_path}/verification-annotations"))], "="),
        "safepkt_assert = "
        + _inline(
            [
                ("git", _quote(SAFEPKT_ASSERT_GIT)),
                ("rev", _quote(_SAFEPKT_ASSERT_REV)),
                ("features", _list(["verifier-klee"])),
            ],
            "=",
        ),
        f"ink_primitives = {_ink_dependency('primitives')}",
        "ink_abi = "
        + _ink_dependency("abi", ("features", _list(["derive"])), ("optional", "true")),
        f"ink_core = {_ink_dependency('core')}",
        f"ink_lang = {_ink_dependency('lang')}",
        f"ink_prelude = {_ink_dependency('prelude')}",
        "",
        "scale = "
        + _inline(
            [
                ("package", _quote("parity-scale-codec")),
                ("version", _quote("1.2")),
                ("default-features", "false"),
                ("features", _list(["derive"])),
            ]
        ),
        "",
        "[dependencies.type-metadata]",
        f"git = {_quote(TYPE_METADATA_GIT)}",
        f"rev = {_quote(_TYPE_METADATA_REV)}",
        "default-features = false",
        f"features = {_list(['derive'])}",
        "optional = true",
        "",
        "[patch.crates-io]",
        f"arrayvec = {_patched('0.4.12', '/safepkt-arrayvec')}",
        f"rand = {_patched('0.7.3', '/safepkt-rand')}",
        f"smallvec = {_patched('1.7.0', '/safepkt-rust-smallvec')}",
        "",
        "[lib]",
        f"name = {name}",
        f"path = {_quote('src/lib.rs')}",
        "crate-type = "
        + _array(
            ["cdylib", "rlib"],
            "\t",
            comments={
                "cdylib": "Used for normal contract Wasm blobs.",
                "rlib": "Used for ABI generation.",
            },
        ),
        "",
        "[features]",
        f"verifier-klee = {_list(['verification-annotations/verifier-klee'])}",
        f"default = {_list(['test-env'])}",
        "std = "
        + _array(
            [
                "ink_abi/std",
                "ink_core/std",
                "ink_primitives/std",
                "ink_prelude/std",
                "scale/std",
                "type-metadata/std",
            ],
            "    ",
        ),
        "test-env = " + _array(["std", "ink_lang/test-env"], "    "),
        "ink-generate-abi = "
        + _array(
            [
                "std",
                "ink_abi",
                "type-metadata",
                "ink_core/ink-generate-abi",
                "ink_lang/ink-generate-abi",
            ],
            "    ",
        ),
        f"ink-as-dependency = {_list([])}",
        "",
        "[profile.release]",
        f"panic = {_quote('abort')}",
        "lto = true",
        f"opt-level = {_quote('z')}",
        "overflow-checks = true",
        "",
        "[workspace]",
        "members = " + _array([".ink/abi_gen"], "\t", trailing_comma=False),
        "exclude = " + _array([".ink"], "\t", trailing_comma=False),
    ]
    return "\n".join(lines) + "\n"