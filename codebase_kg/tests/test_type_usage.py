from __future__ import annotations

from pathlib import Path

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KnowledgeGraph
from codebase_kg.parsers import id_generator as idg
from codebase_kg.parsers.extractors import TypeUsageExtractor
from codebase_kg.parsers.heuristics import NameClassifier
from codebase_kg.tests.conftest import extract_graph, rel_pairs, write_ts

MODELS = """
export class UserEntity { id: number; name: string; }
export class CreateUserDto { name: string; }
export class Mailer { send() {} }
export interface Paged { page: number }
export enum Role { Admin, Member }
export type UserId = number;
export class Repository<T> { find(): T[] { return []; } }
"""


def _targets(graph: KnowledgeGraph, rel_type: cs.RelationshipType, from_id: str) -> set[str]:
    return {to for frm, to in rel_pairs(graph, rel_type) if frm == from_id}


def _model_ids(*names: str) -> set[str]:
    return {idg.class_id(name, "src/models.ts") for name in names}


def test_annotations_yield_kind_specific_usage(temp_repo: Path) -> None:
    write_ts(temp_repo, "models.ts", MODELS)
    write_ts(
        temp_repo,
        "user.service.ts",
        """
        import { CreateUserDto, Mailer, Paged, Role, UserId } from './models';

        export class UserService {
          create(dto: CreateUserDto, paging: Paged, id: UserId): Mailer {
            const role: Role = Role.Member;
            return null;
          }
        }
        """,
    )

    graph = extract_graph(temp_repo)

    create = idg.method_id("UserService", "create", "src/user.service.ts")
    assert _targets(graph, cs.RelationshipType.USES_MODEL, create) == _model_ids(
        "CreateUserDto"
    )
    assert _targets(graph, cs.RelationshipType.USES_CLASS, create) == _model_ids("Mailer")
    assert _targets(graph, cs.RelationshipType.USES_INTERFACE, create) == {
        idg.interface_id("Paged", "src/models.ts")
    }
    assert _targets(graph, cs.RelationshipType.USES_ENUM, create) == {
        idg.enum_id("Role", "src/models.ts")
    }
    assert _targets(graph, cs.RelationshipType.USES_TYPE, create) == {
        idg.type_alias_id("UserId", "src/models.ts")
    }


def test_new_expressions(temp_repo: Path) -> None:
    write_ts(temp_repo, "models.ts", MODELS)
    write_ts(
        temp_repo,
        "factory.ts",
        """
        import { UserEntity, Mailer } from './models';

        export function build() {
          const user = new UserEntity();
          const mailer = new Mailer();
          const map = new Map();
          return [user, mailer, map];
        }
        """,
    )

    graph = extract_graph(temp_repo)

    build = idg.function_id("build", "src/factory.ts")
    assert _targets(graph, cs.RelationshipType.CREATES_MODEL, build) == _model_ids(
        "UserEntity"
    )
    assert _targets(graph, cs.RelationshipType.CREATES_INSTANCE, build) == _model_ids(
        "Mailer"
    )
    assert _targets(graph, cs.RelationshipType.USES_MODEL, build) == _model_ids(
        "UserEntity"
    )


def test_repository_members_use_their_model_type_arguments(temp_repo: Path) -> None:
    write_ts(temp_repo, "models.ts", MODELS)
    write_ts(
        temp_repo,
        "user.store.ts",
        """
        import { Repository, UserEntity } from './models';

        export class UserStore {
          constructor(private readonly userRepository: Repository<UserEntity>) {}

          all() {
            return this.userRepository.find();
          }
        }
        """,
    )

    graph = extract_graph(temp_repo)

    all_id = idg.method_id("UserStore", "all", "src/user.store.ts")
    assert _model_ids("UserEntity", "Repository") == _targets(
        graph, cs.RelationshipType.USES_MODEL, all_id
    )


def test_property_access_on_model_typed_variables(temp_repo: Path) -> None:
    write_ts(temp_repo, "models.ts", MODELS)
    write_ts(
        temp_repo,
        "printer.ts",
        """
        import { UserEntity } from './models';

        export function describe(user) {
          const name = user.name;
          return name;
        }

        export function label(entity: UserEntity) {
          return entity.name;
        }
        """,
    )

    graph = extract_graph(temp_repo)

    describe = idg.function_id("describe", "src/printer.ts")
    label = idg.function_id("label", "src/printer.ts")
    assert _targets(graph, cs.RelationshipType.USES_MODEL, describe) == set()
    assert _targets(graph, cs.RelationshipType.USES_MODEL, label) == _model_ids(
        "UserEntity"
    )


def test_generic_type_parameters_shadow_project_types(temp_repo: Path) -> None:
    write_ts(
        temp_repo,
        "box.ts",
        """
        export class T {}
        export function wrap<T>(value: T): T { return value; }
        """,
    )

    graph = extract_graph(temp_repo)

    wrap = idg.function_id("wrap", "src/box.ts")
    assert _targets(graph, cs.RelationshipType.USES_CLASS, wrap) == set()


def test_custom_classifier_changes_model_detection(temp_repo: Path) -> None:
    write_ts(
        temp_repo,
        "a.ts",
        """
        export class Invoice {}
        export function make(): Invoice { return new Invoice(); }
        """,
    )

    classifier = NameClassifier(is_model=lambda name: name == "Invoice")
    graph = extract_graph(temp_repo, extractors=[TypeUsageExtractor(classifier)])

    make = idg.function_id("make", "src/a.ts")
    assert _targets(graph, cs.RelationshipType.USES_MODEL, make) == {
        idg.class_id("Invoice", "src/a.ts")
    }
    assert _targets(graph, cs.RelationshipType.CREATES_MODEL, make) == {
        idg.class_id("Invoice", "src/a.ts")
    }
