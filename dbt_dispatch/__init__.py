"""
dbt-dispatch: generate tenant dbt models when a BigQuery dataset appears.

Flow:
    Pub/Sub push (audit log) → events → plan (identifiers + catalog) → dispatch → GitHub

Layers:
    - identifiers: split ``<namespace>__<tenant>`` dataset ids
    - catalog: static table of templates per namespace
    - plan: resolve a dataset id into template → model file pairs
    - events / dispatch: decode the inbound push, deliver the outbound plan
    - server / __main__: FastAPI service and CLI around the above
"""

__version__ = "0.1.0"
