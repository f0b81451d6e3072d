from .agreement_create_flow import AgreementCreateFlow

__all__ = ["AgreementCreateFlow"]
