"""Generate Algorand demo accounts (admin + two holders) with API access tokens and save to file."""
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from algosdk import account, mnemonic

from middleware.auth import issue_access_token

accounts = {}
for role in ["admin", "holder1", "holder2"]:
    pk, addr = account.generate_account()
    accounts[role] = {
        "address": addr,
        "mnemonic": mnemonic.from_private_key(pk),
        "access_token": issue_access_token(wallet_address=addr),
    }

out_path = os.path.join(os.path.dirname(__file__), "demo_accounts.json")
with open(out_path, "w") as f:
    json.dump(accounts, f, indent=2)

print(f"Accounts saved to: {out_path}")
print(f"Set ADMIN_WALLET={accounts['admin']['address']} to make the first account the registry admin")
for role, info in accounts.items():
    print(f"\n{role.upper()}:")
    print(f"  {info['address']}")
