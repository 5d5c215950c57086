"""
abook_sync.sync - Reconciliation of the address book with Google Contacts

Modules:
    contact: LocalContact and RemoteContact data model
    nickname: Nickname generation
    conflict: Operator choices and the identical-contact rule
    engine: Email classification and conflict resolution
    driver: init and sync operations
"""
