"""Unit tests for chain resolution."""

import logging

import pytest

from gql_sdkgen.core.chain import ChainResolver, assign_method_names, elide_tree, resolve_chains
from gql_sdkgen.core.config import load_config
from gql_sdkgen.core.context import build_context
from gql_sdkgen.core.errors import ChainNameConflict, UnresolvedModelReference
from gql_sdkgen.core.models import extract_models
from gql_sdkgen.core.naming import chain_method_name, extends_name

from conftest import (
    ISSUE_COMMENTS_DOCUMENT,
    ISSUE_DOCUMENT,
    ISSUE_ID_DOCUMENT,
    ISSUE_ID_SCHEMA_SDL,
    ISSUE_SCHEMA_SDL,
    PROJECT_DOCUMENTS,
    PROJECT_SCHEMA_SDL,
    TEAM_DOCUMENT,
    make_documents,
)

TEAM_SCHEMA_SDL = """
type Query {
  team(id: ID!): Team
  teamList(id: ID!): [Issue!]!
  list(id: ID!): [Issue!]!
}

type Team {
  id: ID!
  name: String!
}

type Issue {
  id: ID!
}
"""


def list_document(name: str) -> str:
    return f"query {name}($id: ID!) {{ teamList(id: $id) {{ id }} }}"


def nodes(definitions):
    return {node.name: node for roots in definitions.values() for root in roots for node in root.walk()}


def assert_acyclic(definitions):
    seen = []

    def visit(node, ancestors):
        assert node.name not in ancestors
        seen.append(node.name)
        for child in node.children:
            visit(child, ancestors + (node.name,))

    for roots in definitions.values():
        for root in roots:
            visit(root, ())
    assert len(seen) == len(set(seen))


# =============================================================================
# Tests: Naming Helpers
# =============================================================================


class TestNamingHelpers:
    """Tests for name prefix matching and method names."""

    def test_extends_name(self):
        assert extends_name("issueComments", "issue")
        assert extends_name("issue_comments", "issue")
        assert not extends_name("issues", "issue")
        assert not extends_name("issue", "issue")
        assert not extends_name("comment", "issue")

    def test_chain_method_name(self):
        assert chain_method_name("issueComments", "issue") == "comments"
        assert chain_method_name("issue_comments", "issue") == "comments"
        assert chain_method_name("issueComments", None) == "issueComments"
        assert chain_method_name("comment", "issue") == "comment"


# =============================================================================
# Tests: Basic Chaining
# =============================================================================


class TestChaining:
    """Tests for parent selection and argument elision."""

    def test_child_chained_with_elided_argument(self, resolve):
        definitions = resolve(ISSUE_SCHEMA_SDL, ISSUE_DOCUMENT, ISSUE_COMMENTS_DOCUMENT)

        assert list(definitions) == ["query"]
        (issue,) = definitions["query"]
        assert issue.name == "issue"
        assert issue.method_name == "issue"
        assert [v.name for v in issue.arguments] == ["id"]

        (comments,) = issue.children
        assert comments.name == "issueComments"
        assert comments.method_name == "comments"
        assert comments.arguments == ()
        assert comments.path == ("IssueQuery_Issue",)
        (inherited,) = comments.inherited
        assert inherited.variable.name == "id"
        assert inherited.model == "IssueQuery_Issue"
        assert inherited.field == "id"
        assert inherited.depth == 0

    def test_type_mismatch_stays_at_root(self, resolve):
        definitions = resolve(
            ISSUE_SCHEMA_SDL,
            ISSUE_DOCUMENT,
            "query issueComments($id: String!) { issueComments(id: $id) { id body } }",
        )
        roots = definitions["query"]
        assert [root.name for root in roots] == ["issue", "issueComments"]
        assert all(not root.children for root in roots)
        assert [v.name for v in roots[1].arguments] == ["id"]

    def test_parent_must_select_identifying_field(self, resolve):
        definitions = resolve(
            ISSUE_SCHEMA_SDL,
            "query issue($id: ID!) { issue(id: $id) { title } }",
            ISSUE_COMMENTS_DOCUMENT,
        )
        assert [root.name for root in definitions["query"]] == ["issue", "issueComments"]

    def test_nullable_field_does_not_satisfy_required_variable(self, resolve):
        definitions = resolve(
            ISSUE_SCHEMA_SDL.replace("  id: ID!\n  title", "  id: ID\n  title"),
            ISSUE_DOCUMENT,
            ISSUE_COMMENTS_DOCUMENT,
        )
        roots = definitions["query"]
        assert [root.name for root in roots] == ["issue", "issueComments"]
        assert [v.name for v in roots[1].arguments] == ["id"]

    def test_optional_variables_remain_arguments(self, context, models, documents):
        definitions = resolve_chains(context, documents, models)
        issue_comments = nodes(definitions)["issueComments"]

        assert issue_comments.method_name == "comments"
        assert [v.name for v in issue_comments.arguments] == ["first"]
        assert [a.variable.name for a in issue_comments.inherited] == ["id"]

    def test_kinds_kept_apart(self, context, models, documents):
        definitions = resolve_chains(context, documents, models)

        assert list(definitions) == ["query", "mutation"]
        assert [root.name for root in definitions["query"]] == ["issue", "issues"]
        assert [root.name for root in definitions["mutation"]] == ["issueUpdate", "issueArchive"]

    def test_list_result_is_never_a_parent(self, resolve):
        definitions = resolve(
            ISSUE_SCHEMA_SDL,
            ISSUE_DOCUMENT,
            ISSUE_COMMENTS_DOCUMENT,
            "query issueCommentsAgain($id: ID!) { issueComments(id: $id) { id } }",
        )
        (issue,) = definitions["query"]
        assert [child.name for child in issue.children] == ["issueComments", "issueCommentsAgain"]
        assert [child.method_name for child in issue.children] == ["comments", "commentsAgain"]

    def test_scalar_result_has_no_model(self, context, models, documents):
        archive = nodes(resolve_chains(context, documents, models))["issueArchive"]
        assert archive.model is None
        assert archive.operation.result_type == "Boolean"

    def test_every_operation_appears_once(self, context, models, documents):
        definitions = resolve_chains(context, documents, models)
        assert_acyclic(definitions)
        assert set(nodes(definitions)) == {
            "issue", "issueComments", "issues", "issueUpdate", "issueArchive",
        }


# =============================================================================
# Tests: Deep Chains
# =============================================================================


class TestDeepChains:
    """Tests for chains more than one level deep."""

    def test_best_ranked_parent_wins(self, resolve):
        definitions = resolve(PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, chainMatch="any")

        (team,) = definitions["query"]
        (project,) = team.children
        (milestones,) = project.children
        assert project.method_name == "project"
        assert milestones.method_name == "milestones"
        assert milestones.path == ("TeamQuery_Team", "TeamProjectQuery_TeamProject")

    def test_arguments_inherited_from_any_ancestor(self, resolve):
        definitions = resolve(PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, chainMatch="any")
        found = nodes(definitions)

        project = found["teamProject"]
        assert [v.name for v in project.arguments] == ["key"]
        assert [(a.variable.name, a.depth) for a in project.inherited] == [("id", 0)]

        milestones = found["teamProjectMilestones"]
        assert milestones.arguments == ()
        inherited = {a.variable.name: a for a in milestones.inherited}
        assert inherited["id"].model == "TeamQuery_Team"
        assert inherited["id"].depth == 1
        assert inherited["key"].model == "TeamProjectQuery_TeamProject"
        assert inherited["key"].depth == 0
        assert inherited["slug"].depth == 0

    def test_identifying_mode_requires_every_identifying_variable(self, resolve):
        definitions = resolve(
            PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, identifyingFields=["id", "key"]
        )
        (team,) = [root for root in definitions["query"] if root.name == "team"]
        # teamProject needs key, which Team does not select
        assert team.children == ()
        assert [root.name for root in definitions["query"]] == [
            "team", "teamProject", "teamProjectMilestones",
        ]

    def test_structural_matching_skips_cycles(self, resolve):
        definitions = resolve(
            """
            type Query { issue(id: ID!): Issue comment(id: ID!): Comment }
            type Issue { id: ID! }
            type Comment { id: ID! }
            """,
            "query issue($id: ID!) { issue(id: $id) { id } }",
            "query comment($id: ID!) { comment(id: $id) { id } }",
            requireNamePrefix=False,
        )
        assert_acyclic(definitions)
        (comment,) = definitions["query"]
        assert comment.name == "comment"
        assert [child.name for child in comment.children] == ["issue"]


# =============================================================================
# Tests: Method Name Collisions
# =============================================================================


class TestNameCollisions:
    """Tests for sibling method disambiguation."""

    def test_later_sibling_gets_suffix(self, resolve):
        definitions = resolve(
            TEAM_SCHEMA_SDL,
            TEAM_DOCUMENT,
            list_document("teamList"),
            list_document("list"),
            requireNamePrefix=False,
        )
        (team,) = definitions["query"]
        assert [(c.name, c.method_name) for c in team.children] == [
            ("teamList", "list"),
            ("list", "list2"),
        ]

    def test_natural_names_reserved_first(self, resolve):
        definitions = resolve(
            TEAM_SCHEMA_SDL,
            TEAM_DOCUMENT,
            list_document("teamList"),
            list_document("list"),
            list_document("teamList2"),
            requireNamePrefix=False,
        )
        (team,) = definitions["query"]
        assert [(c.name, c.method_name) for c in team.children] == [
            ("teamList", "list"),
            ("list", "list3"),
            ("teamList2", "list2"),
        ]

    def test_conflict_when_disambiguation_disabled(self, resolve):
        with pytest.raises(ChainNameConflict) as exc_info:
            resolve(
                TEAM_SCHEMA_SDL,
                TEAM_DOCUMENT,
                list_document("teamList"),
                list_document("list"),
                requireNamePrefix=False,
                disambiguationLimit=1,
            )
        error = exc_info.value
        assert error.name == "list"
        assert error.operations == ("teamList", "list")
        assert error.parent == "team"
        assert "teamList" in str(error) and "'list'" in str(error)

    def test_conflict_when_name_too_long(self, resolve):
        with pytest.raises(ChainNameConflict):
            resolve(
                TEAM_SCHEMA_SDL,
                TEAM_DOCUMENT,
                list_document("teamList"),
                list_document("list"),
                requireNamePrefix=False,
                maxMethodNameLength=4,
            )

    def test_identifying_field_name_is_reserved(self, resolve):
        definitions = resolve(ISSUE_ID_SCHEMA_SDL, ISSUE_DOCUMENT, ISSUE_ID_DOCUMENT)

        (issue,) = definitions["query"]
        (issue_id,) = issue.children
        assert issue_id.name == "issueId"
        assert issue_id.method_name == "id2"
        assert [a.field for a in issue_id.inherited] == ["id"]

    def test_identifying_field_conflict_names_the_field(self, resolve):
        with pytest.raises(ChainNameConflict) as exc_info:
            resolve(ISSUE_ID_SCHEMA_SDL, ISSUE_DOCUMENT, ISSUE_ID_DOCUMENT, disambiguationLimit=1)
        assert exc_info.value.operations == ("IssueQuery_Issue.id", "issueId")
        assert exc_info.value.parent == "issue"

    def test_assign_method_names_at_root(self, context, models, documents):
        resolver = ChainResolver(context)
        operations = resolver.collect_operations(documents, {m.name: m for m in models})
        names = assign_method_names(operations, None, load_config({}))
        assert names == [op.name for op in operations]


# =============================================================================
# Tests: Determinism and Idempotence
# =============================================================================


class TestStability:
    """Tests for deterministic, repeatable output."""

    def test_same_input_same_tree(self, resolve):
        first = resolve(PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, chainMatch="any")
        second = resolve(PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, chainMatch="any")
        assert first == second

    def test_elision_is_idempotent(self, resolve):
        config = load_config({"chainMatch": "any"})
        definitions = resolve(PROJECT_SCHEMA_SDL, *PROJECT_DOCUMENTS, chainMatch="any")
        once = elide_tree(definitions, config)
        assert once == definitions
        assert elide_tree(once, config) == once

    def test_inputs_not_mutated(self, context, models, documents):
        before = list(models)
        resolve_chains(context, documents, models)
        assert models == before


# =============================================================================
# Tests: Errors
# =============================================================================


class TestChainErrors:
    """Tests for unresolvable operations."""

    def test_missing_model(self, context, documents):
        with pytest.raises(UnresolvedModelReference) as exc_info:
            ChainResolver(context).resolve(documents, [])
        assert exc_info.value.operation == "issue"

    def test_unknown_variable_type(self, resolve):
        with pytest.raises(UnresolvedModelReference) as exc_info:
            resolve(
                ISSUE_SCHEMA_SDL,
                "query issue($id: Missing!) { issue(id: $id) { id } }",
            )
        assert exc_info.value.reference == "$id: Missing"

    def test_several_root_fields_warns(self, config, diagnostics, schema_ast):
        documents = make_documents(
            "query both($id: ID!) { issue(id: $id) { id } comment(id: $id) { id } }"
        )
        context = build_context(schema_ast, config, documents)
        models = extract_models(context, documents)
        definitions = ChainResolver(context, diagnostics).resolve(documents, models)

        (both,) = definitions["query"]
        assert both.operation.field_name == "issue"
        assert diagnostics.messages("chain", level=logging.WARNING)
