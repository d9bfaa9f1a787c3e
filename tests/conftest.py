"""Shared schema and document fixtures."""

import pytest
from graphql import parse

from gql_sdkgen.core.chain import ChainResolver
from gql_sdkgen.core.config import load_config
from gql_sdkgen.core.context import SchemaContextBuilder
from gql_sdkgen.core.diagnostics import Diagnostics
from gql_sdkgen.core.ir import DocumentFile
from gql_sdkgen.core.models import ModelExtractor

SCHEMA_SDL = """
scalar DateTime
scalar Geometry

enum IssuePriority {
  LOW
  HIGH
}

interface Node {
  id: ID!
}

type Query {
  issue(id: ID!): Issue
  issues(first: Int): [Issue!]!
  issueComments(id: ID!, first: Int): [Comment!]!
  comment(id: ID!): Comment
  search(term: String!): [SearchResult!]!
}

type Mutation {
  issueUpdate(id: ID!, input: IssueUpdateInput!): IssuePayload!
  issueArchive(id: ID!): Boolean!
}

type Issue implements Node {
  id: ID!
  title: String!
  description: String
  priority: IssuePriority
  createdAt: DateTime!
  comments: [Comment!]!
  team: Team
}

type Comment implements Node {
  id: ID!
  body: String!
  author: User
}

type Team implements Node {
  id: ID!
  name: String!
}

type User implements Node {
  id: ID!
  name: String!
}

type IssuePayload {
  success: Boolean!
  issue: Issue
}

input IssueUpdateInput {
  title: String
  priority: IssuePriority
}

union SearchResult = Issue | Comment
"""

DOCUMENTS = [
    """
    fragment IssueFields on Issue {
      id
      title
      priority
    }
    """,
    """
    query issue($id: ID!) {
      issue(id: $id) {
        ...IssueFields
        createdAt
        team {
          id
          name
        }
      }
    }
    """,
    """
    query issueComments($id: ID!, $first: Int) {
      issueComments(id: $id, first: $first) {
        id
        body
        author {
          id
          name
        }
      }
    }
    """,
    """
    query issues($first: Int) {
      issues(first: $first) {
        id
        title
      }
    }
    """,
    """
    mutation issueUpdate($id: ID!, $input: IssueUpdateInput!) {
      issueUpdate(id: $id, input: $input) {
        success
        issue {
          id
          title
        }
      }
    }
    """,
    """
    mutation issueArchive($id: ID!) {
      issueArchive(id: $id)
    }
    """,
]

# The two-type schema used to describe chaining
ISSUE_SCHEMA_SDL = """
type Query {
  issue(id: ID!): Issue
  issueComments(id: ID!): [Comment!]!
}

type Issue {
  id: ID!
  title: String!
  comments: [Comment!]!
}

type Comment {
  id: ID!
  body: String!
}
"""

# issueId chains under issue with the natural method name `id`
ISSUE_ID_SCHEMA_SDL = """
type Query {
  issue(id: ID!): Issue
  issueId(id: ID!): ID
}

type Issue {
  id: ID!
  title: String!
}
"""

ISSUE_ID_DOCUMENT = "query issueId($id: ID!) { issueId(id: $id) }"

ISSUE_DOCUMENT = """
query issue($id: ID!) {
  issue(id: $id) {
    id
    title
  }
}
"""

ISSUE_COMMENTS_DOCUMENT = """
query issueComments($id: ID!) {
  issueComments(id: $id) {
    id
    body
  }
}
"""

TEAM_DOCUMENT = "query team($id: ID!) { team(id: $id) { id name } }"

PROJECT_SCHEMA_SDL = """
type Query {
  team(id: ID!): Team
  teamProject(id: ID!, key: String!): Project
  teamProjectMilestones(id: ID!, key: String!, slug: String!): [Milestone!]!
}

type Team {
  id: ID!
  name: String!
}

type Project {
  id: ID!
  key: String!
  slug: String!
  name: String!
}

type Milestone {
  id: ID!
  name: String!
}
"""

PROJECT_DOCUMENTS = (
    TEAM_DOCUMENT,
    """
    query teamProject($id: ID!, $key: String!) {
      teamProject(id: $id, key: $key) { key slug name }
    }
    """,
    """
    query teamProjectMilestones($id: ID!, $key: String!, $slug: String!) {
      teamProjectMilestones(id: $id, key: $key, slug: $slug) { id name }
    }
    """,
)


def make_documents(*sources: str) -> list[DocumentFile]:
    return [
        DocumentFile(document=parse(source), location=f"document{i}.graphql")
        for i, source in enumerate(sources)
    ]


@pytest.fixture
def config():
    return load_config({"documentFile": "./documents"})


@pytest.fixture
def schema_ast():
    return parse(SCHEMA_SDL)


@pytest.fixture
def documents():
    return make_documents(*DOCUMENTS)


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def context(schema_ast, documents, config, diagnostics):
    return SchemaContextBuilder(config, diagnostics).build(schema_ast, documents)


@pytest.fixture
def models(context, documents, diagnostics):
    return ModelExtractor(context, diagnostics).extract(documents)


@pytest.fixture
def resolve():
    """Run context, model and chain stages over SDL and document sources."""

    def _resolve(sdl: str, *sources: str, **config):
        plugin_config = load_config({"documentFile": "./documents", **config})
        docs = make_documents(*sources)
        context = SchemaContextBuilder(plugin_config).build(parse(sdl), docs)
        models = ModelExtractor(context).extract(docs)
        return ChainResolver(context).resolve(docs, models)

    return _resolve
