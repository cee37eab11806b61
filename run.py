#!/usr/bin/env python3
"""
Loan Core Entry Point

Starts the FastAPI server with host and port taken from LOANCORE_* settings.
"""

import sys

from loan_core.api import run_server
from loan_core.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Loan Core...")
    print("💰 All financial calculations use Decimal precision")
    print("🔒 Audit trail " + ("active" if config.enable_audit_logging else "disabled"))
    print(f"🌐 API available at: http://{config.api_host}:{config.api_port}")
    print(f"📚 Documentation at: http://{config.api_host}:{config.api_port}/docs")
    print()

    try:
        run_server(debug=False)
    except KeyboardInterrupt:
        print("\n👋 Shutting down Loan Core...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
