# Services package.
#
#   auth_service        — credential verification, session tokens, registration
#   article_service     — CRUD + pagination + read cache for Article
#   query_builder       — filter criteria → storage-agnostic list query
#   ownership           — single-owner authorization check
#   cache_invalidation  — best-effort article cache clear after writes
#
# Services receive their collaborators (stores, cache, signer, hasher)
# through their constructors; ``articles_api.dependencies`` wires them per
# request.
