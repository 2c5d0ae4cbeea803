"""Account Core: credential issuance and account recovery service."""
