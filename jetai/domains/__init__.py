"""Domain modules - Business logic organized by bounded contexts.

Note: Domain modules are imported lazily to avoid circular imports.
Import them directly where needed:

    from jetai.domains.credentials import CredentialPoolManager
    from jetai.domains.enrichment.service import EnrichmentService
    from jetai.domains.chat.services.orchestrator import ChatOrchestrator
"""
