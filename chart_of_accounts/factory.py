"""
Component Wiring

Builds a Forest with the policies, storage and audit trail named in the
settings. Drivers call `create_forest()` once and pass the result around.
"""

from typing import Optional

from chart_of_accounts.audit import AuditLogger, configure_logging
from chart_of_accounts.config import Settings, get_settings
from chart_of_accounts.forest import Forest
from chart_of_accounts.policies import create_attachment_policy, create_sign_convention
from chart_of_accounts.services.storage import JsonLinesAuditStorage, TextFileForestStorage


def create_forest(settings: Optional[Settings] = None) -> Forest:
    """
    Create an empty Forest configured from settings.
    
    Usage:
        forest = create_forest()
        forest.build_from_file(get_settings().storage.structure_path)
    """
    settings = settings or get_settings()
    app = settings.app
    ledger = settings.ledger
    storage = settings.storage
    
    configure_logging(app.effective_log_level)
    
    audit_storage = None
    if app.audit_log_path:
        audit_storage = JsonLinesAuditStorage(app.audit_log_path, encoding=storage.encoding)
    
    return Forest(
        attachment_policy=create_attachment_policy(
            ledger.numbering_policy,
            width=ledger.account_number_width,
            root_digits=ledger.root_digits,
        ),
        sign_convention=create_sign_convention(
            ledger.sign_convention,
            normal_side=ledger.uniform_normal_side,
        ),
        storage=TextFileForestStorage(
            indent_width=storage.indent_width,
            transaction_suffix=storage.transaction_suffix,
            encoding=storage.encoding,
        ),
        audit_logger=AuditLogger(audit_storage),
    )
