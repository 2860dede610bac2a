"""
pathology_search - in-memory vector search over pathology case descriptions.

Dense sentence embeddings, PCA-projected into corpus space, ranked by
asymmetric cosine similarity plus a keyword boost. The same SearchEngine
runs behind a message-driven worker and behind a request handler.
"""

__version__ = "0.1.0"
