"""GraphQL query templates for the GitHub Projects (v2) API.

Mutations are not templated here: the executor composes one aliased document
per batch from mdboard.github.operations.
"""

_PROJECT_FIELDS = """
      id
      title
      fields(first: 50) {
        nodes {
          __typename
          ... on ProjectV2Field {
            id
            name
          }
          ... on ProjectV2SingleSelectField {
            id
            name
            options {
              id
              name
            }
          }
        }
      }
"""

# Project lookup by owner and number (for project URLs)
GET_USER_PROJECT = (
    """
query GetUserProject($owner: String!, $number: Int!) {
  user(login: $owner) {
    projectV2(number: $number) {"""
    + _PROJECT_FIELDS
    + """
    }
  }
}
"""
)

GET_ORG_PROJECT = (
    """
query GetOrgProject($owner: String!, $number: Int!) {
  organization(login: $owner) {
    projectV2(number: $number) {"""
    + _PROJECT_FIELDS
    + """
    }
  }
}
"""
)

# Project metadata by node id
GET_PROJECT = (
    """
query GetProject($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {"""
    + _PROJECT_FIELDS
    + """
    }
  }
}
"""
)

# Board items, 100 per page
GET_PROJECT_ITEMS = """
query GetProjectItems($projectId: ID!, $cursor: String) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: 100, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldSingleSelectValue {
                field {
                  ... on ProjectV2SingleSelectField {
                    name
                  }
                }
                name
                optionId
              }
              ... on ProjectV2ItemFieldTextValue {
                field {
                  ... on ProjectV2Field {
                    name
                  }
                }
                text
              }
            }
          }
          content {
            __typename
            ... on Issue {
              id
              title
              body
              url
              state
            }
            ... on PullRequest {
              id
              title
              body
              url
              state
            }
            ... on DraftIssue {
              id
              title
              body
            }
          }
        }
      }
    }
  }
}
"""
