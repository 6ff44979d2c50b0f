"""Catalog services layer.

This module holds the version resolver, the dataset and job catalogs,
and the run lifecycle built on top of the transactional metadata store.
"""
