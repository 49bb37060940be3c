"""Smoke test: call the AFAS SOAP API with credentials from the environment.

Env vars:
- AFAS_CUSTOMER_ID
- AFAS_APP_TOKEN
- AFAS_ENVIRONMENT (test|accept) [default: live]
- AFAS_USE_WSDL (1|true)           [default: schema-less]

Optional (for a GetConnector call):
- AFAS_GET_CONNECTOR=Profit_Debtors
- AFAS_GET_TAKE=5                  [default: 5]

Run:
  python scripts/afas_smoke_test.py
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from afas_gateway import GatewayClient

load_dotenv()


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise SystemExit(
            f"Missing env var {name}. Put it in your .env and export it before running."
        )
    return value


def main() -> None:
    logging.basicConfig(level=os.environ.get("AFAS_LOG_LEVEL", "INFO"))
    _require_env("AFAS_CUSTOMER_ID")
    _require_env("AFAS_APP_TOKEN")

    afas = GatewayClient.from_env()

    print("Calling versioninfo...")
    print(afas.call("versioninfo", "GetVersionInfo", {}))

    connector_id = os.environ.get("AFAS_GET_CONNECTOR")
    if connector_id:
        take = os.environ.get("AFAS_GET_TAKE", "5")
        print(f"\nCalling GetConnector {connector_id} (take={take})...")
        print(afas.call("get", "GetData", {"connectorId": connector_id, "take": take}))
    else:
        print("\nSkipped GetConnector call (set AFAS_GET_CONNECTOR to enable).")


if __name__ == "__main__":
    main()
