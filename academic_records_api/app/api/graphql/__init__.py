"""
GraphQL API for students, courses and accounts.
"""

from .context import GraphQLContext, get_context
from .schema import Mutation, Query, create_graphql_router, schema

__all__ = [
    "GraphQLContext",
    "Mutation",
    "Query",
    "create_graphql_router",
    "get_context",
    "schema",
]
