#!/usr/bin/env python3
"""
Command-line interface for running the AWS Reconciler locally.

It requires AWS credentials to be configured (via AWS CLI, environment
variables, or IAM roles).

Usage:
    python run_reconciler.py plan --prefix ./infra
    python run_reconciler.py apply --prefix ./infra --connector vpc
    python run_reconciler.py plan --prefix ./infra --log-level DEBUG --output json
"""

import sys

from src.cli import main

if __name__ == "__main__":
    sys.exit(main())
