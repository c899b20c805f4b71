"""
SMSPro Send Function Utilities
==============================

Shared helper modules for the SMSPro send function:

- logger.py          → structured JSON logging
- errors.py          → client-facing request errors (400 responses)
- config.py          → channel secret providers and gateway settings
- secrets.py         → AWS Secrets Manager integration
- smspro_client.py   → SOAP envelope builder and SMSPro gateway client

Nothing here keeps state between invocations; every module is safe to use
from concurrent Lambda containers.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
