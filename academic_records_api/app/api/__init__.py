"""
API package.

The public surface is a single GraphQL endpoint (``api.graphql``) plus
a plain health check route defined in ``main``.
"""
