from __future__ import annotations

from pathlib import Path

import pytest

from codebase_kg.core import constants as cs
from codebase_kg.infrastructure.exceptions import ProjectLoadError
from codebase_kg.parsers.project import load_project
from codebase_kg.tests.conftest import write_ts


def test_missing_project_path_raises(tmp_path: Path) -> None:
    with pytest.raises(ProjectLoadError):
        load_project(tmp_path / "nope")


def test_project_path_must_be_directory(tmp_path: Path) -> None:
    file_path = tmp_path / "file.ts"
    file_path.write_text("export const a = 1;\n", encoding="utf-8")
    with pytest.raises(ProjectLoadError):
        load_project(file_path)


def test_loads_only_typescript_sources_under_src(temp_repo: Path) -> None:
    write_ts(temp_repo, "app.module.ts", "export class AppModule {}\n")
    write_ts(temp_repo, "ui/view.tsx", "export const View = () => null;\n")
    (temp_repo / "src" / "notes.md").write_text("# notes\n", encoding="utf-8")
    (temp_repo / "outside.ts").write_text("export const x = 1;\n", encoding="utf-8")

    project = load_project(temp_repo)

    assert sorted(project.files) == ["src/app.module.ts", "src/ui/view.tsx"]
    assert project.files["src/app.module.ts"].subtype == "module"


def test_excluded_directories_are_skipped(temp_repo: Path) -> None:
    write_ts(temp_repo, "main.ts", "export const a = 1;\n")
    write_ts(temp_repo, "node_modules/lib/index.ts", "export const b = 1;\n")
    write_ts(temp_repo, "generated/api.ts", "export const c = 1;\n")

    project = load_project(temp_repo, exclude_dirs=frozenset({"node_modules", "generated"}))

    assert list(project.files) == ["src/main.ts"]


def test_falls_back_to_project_root_without_source_dir(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "util.ts").write_text(
        "export function util() {}\n", encoding="utf-8"
    )

    project = load_project(tmp_path, source_dir="src")

    assert project.source_root == tmp_path.resolve()
    assert list(project.files) == ["lib/util.ts"]


def test_undecodable_file_is_skipped(temp_repo: Path) -> None:
    write_ts(temp_repo, "ok.ts", "export const ok = true;\n")
    (temp_repo / "src" / "bad.ts").write_bytes(b"export const s = '\xff\xfe';\n")

    project = load_project(temp_repo)

    assert list(project.files) == ["src/ok.ts"]


def test_syntax_errors_keep_the_file(temp_repo: Path) -> None:
    write_ts(temp_repo, "broken.ts", "export class Broken { method( {\n")

    project = load_project(temp_repo)

    assert project.files["src/broken.ts"].has_errors


def test_declarations_and_exports_are_indexed(temp_repo: Path) -> None:
    write_ts(
        temp_repo,
        "things.ts",
        """
        export class Thing {}
        class Hidden {}
        export interface Shape { size: number }
        export enum Color { Red, Green }
        export type Id = string;
        export function make() {}
        export const LIMIT = 10, other = 2;
        let counter = 0;
        export { Hidden as Visible };
        """,
    )

    source = load_project(temp_repo).files["src/things.ts"]
    kinds = {d.name: d.kind for d in source.declarations}

    assert kinds == {
        "Thing": cs.NodeKind.CLASS,
        "Hidden": cs.NodeKind.CLASS,
        "Shape": cs.NodeKind.INTERFACE,
        "Color": cs.NodeKind.ENUM,
        "Id": cs.NodeKind.TYPE_ALIAS,
        "make": cs.NodeKind.FUNCTION,
        "LIMIT": cs.NodeKind.VARIABLE,
        "other": cs.NodeKind.VARIABLE,
        "counter": cs.NodeKind.VARIABLE,
    }
    assert source.declaration("Thing").exported
    assert not source.declaration("counter").exported
    assert source.export_names["Visible"] == "Hidden"


def test_imports_resolve_through_barrel_files(temp_repo: Path) -> None:
    write_ts(temp_repo, "users/user.entity.ts", "export class UserEntity {}\n")
    write_ts(temp_repo, "users/index.ts", "export * from './user.entity';\n")
    write_ts(
        temp_repo,
        "app.ts",
        """
        import { UserEntity as U } from './users';
        import * as users from './users';
        import express from 'express';
        const u: U = new U();
        """,
    )

    project = load_project(temp_repo)
    app = project.files["src/app.ts"]

    named = app.import_binding("U")
    assert named.style == cs.ImportStyle.NAMED
    assert named.target == "src/users/index.ts"
    resolved = project.resolve_binding(named)
    assert resolved is not None
    assert resolved.file_path == "src/users/user.entity.ts"

    assert app.import_binding("users").style == cs.ImportStyle.NAMESPACE
    assert project.resolve_name(app, "users.UserEntity") == resolved

    external = app.import_binding("express")
    assert external.style == cs.ImportStyle.DEFAULT
    assert external.target is None
    assert project.resolve_binding(external) is None


def test_tsconfig_paths_are_used(temp_repo: Path) -> None:
    (temp_repo / "tsconfig.json").write_text(
        '{"compilerOptions": {"baseUrl": ".", "paths": {"@app/*": ["src/*"]}}}',
        encoding="utf-8",
    )
    write_ts(temp_repo, "core/logger.ts", "export class Logger {}\n")
    write_ts(temp_repo, "main.ts", "import { Logger } from '@app/core/logger';\n")

    project = load_project(temp_repo)

    binding = project.files["src/main.ts"].import_binding("Logger")
    assert binding.target == "src/core/logger.ts"


def test_default_export_resolution(temp_repo: Path) -> None:
    write_ts(temp_repo, "a.ts", "export default class Alpha {}\n")
    write_ts(temp_repo, "b.ts", "function beta() {}\nexport default beta;\n")
    write_ts(
        temp_repo,
        "main.ts",
        "import A from './a';\nimport B from './b';\nA; B;\n",
    )

    project = load_project(temp_repo)
    main = project.files["src/main.ts"]

    alpha = project.resolve_name(main, "A")
    beta = project.resolve_name(main, "B")
    assert alpha is not None and alpha.name == "Alpha"
    assert beta is not None and beta.kind == cs.NodeKind.FUNCTION
