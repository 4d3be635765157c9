"""
Catalog Synchronization Core

Pulls product records from a remote tabular provider, normalizes them
per environment, grows the product store schema on demand and re-hosts
image attachments.

Modules:
    common        - Shared utilities (config loader, logging, errors)
    models        - Data models (RemoteRecord, AttachmentDescriptor, SyncResult)
    airtable      - Remote catalog client and column manifest writer
    normalization - Environment field mapping (raw record -> attribute bag)
    store         - Schema-evolving product store per environment
    attachments   - Image retrieval, naming and placement pipeline
    sync          - Full-refresh orchestrator, lease lock, trigger handler
"""
