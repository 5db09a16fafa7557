from __future__ import annotations

import json
from pathlib import Path

from codebase_kg.parsers.ts.module_resolution import (
    ModuleResolver,
    PathAliases,
    load_path_aliases,
    strip_json_comments,
)

KNOWN = [
    "src/app.module.ts",
    "src/users/user.service.ts",
    "src/users/user.entity.ts",
    "src/users/index.ts",
    "src/shared/config.tsx",
    "src/types/api.d.ts",
]


def test_relative_specifier_with_extension_probe() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases())
    assert (
        resolver.resolve("src/users/user.service.ts", "./user.entity")
        == "src/users/user.entity.ts"
    )
    assert (
        resolver.resolve("src/users/user.service.ts", "../shared/config")
        == "src/shared/config.tsx"
    )


def test_directory_specifier_resolves_index() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases())
    assert resolver.resolve("src/app.module.ts", "./users") == "src/users/index.ts"


def test_js_specifier_maps_to_ts_source() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases())
    assert (
        resolver.resolve("src/app.module.ts", "./users/user.service.js")
        == "src/users/user.service.ts"
    )


def test_declaration_file_is_resolved() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases())
    assert resolver.resolve("src/app.module.ts", "./types/api") == "src/types/api.d.ts"


def test_package_and_escaping_specifiers_are_unresolved() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases())
    assert resolver.resolve("src/app.module.ts", "@nestjs/common") is None
    assert resolver.resolve("src/app.module.ts", "../../outside") is None
    assert resolver.resolve("src/app.module.ts", "./missing") is None


def test_path_alias_with_wildcard() -> None:
    aliases = PathAliases(base_url=".", paths={"@app/*": ("src/*",)})
    resolver = ModuleResolver(KNOWN, aliases)
    assert (
        resolver.resolve("src/app.module.ts", "@app/users/user.entity")
        == "src/users/user.entity.ts"
    )


def test_exact_path_alias() -> None:
    aliases = PathAliases(paths={"@config": ("src/shared/config",)})
    resolver = ModuleResolver(KNOWN, aliases)
    assert resolver.resolve("src/app.module.ts", "@config") == "src/shared/config.tsx"


def test_base_url_resolution() -> None:
    resolver = ModuleResolver(KNOWN, PathAliases(base_url="src"))
    assert resolver.resolve("src/app.module.ts", "users") == "src/users/index.ts"


def test_strip_json_comments_keeps_strings() -> None:
    text = """
    {
      // line comment
      "compilerOptions": {
        /* block */
        "baseUrl": "./",
        "paths": {"@app/*": ["src/*"],},
        "url": "http://example.com"
      },
    }
    """
    data = json.loads(strip_json_comments(text))
    assert data["compilerOptions"]["baseUrl"] == "./"
    assert data["compilerOptions"]["paths"] == {"@app/*": ["src/*"]}
    assert data["compilerOptions"]["url"] == "http://example.com"


def test_load_path_aliases_from_tsconfig(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text(
        """{
          // generated by nest new
          "compilerOptions": {
            "baseUrl": "./",
            "paths": {"@app/*": ["src/*"], "bad": "not-a-list"}
          }
        }""",
        encoding="utf-8",
    )
    aliases = load_path_aliases(tmp_path)
    assert aliases.base_url == "."
    assert dict(aliases.paths) == {"@app/*": ("src/*",)}


def test_load_path_aliases_without_tsconfig(tmp_path: Path) -> None:
    assert load_path_aliases(tmp_path) == PathAliases()


def test_load_path_aliases_with_broken_tsconfig(tmp_path: Path) -> None:
    (tmp_path / "tsconfig.json").write_text("{ not json", encoding="utf-8")
    assert load_path_aliases(tmp_path) == PathAliases()
