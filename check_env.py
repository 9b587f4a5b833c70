#!/usr/bin/env python3
"""
Environment check script
Checks the inputs the TTGO IoT stack needs before running cdk synth/deploy
"""

import os
import sys
from typing import List, Tuple, Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ttgo_iot.config import (
    ConfigurationError, DEFAULT_CSR_PATH, REQUIRED_SOURCE_VARS,
    load_stack_config, read_csr,
)

SECRET_VARS = {"GITHUB_TOKEN"}


def check_required_vars() -> List[Tuple[str, bool, str]]:
    """Check the source repository variables, secrets masked"""
    results = []
    for var in REQUIRED_SOURCE_VARS:
        value = os.environ.get(var, "")
        present = bool(value.strip())
        shown = "****" if present and var in SECRET_VARS else value
        results.append((var, present, shown))
    return results


def check_csr(path: str) -> Tuple[bool, str]:
    """Check the certificate signing request file"""
    try:
        read_csr(path)
        return True, path
    except ConfigurationError as e:
        return False, str(e)


def check_aws_credentials() -> Tuple[bool, Dict[str, str]]:
    """Check AWS credentials"""
    try:
        sts = boto3.client('sts')
        identity = sts.get_caller_identity()
        return True, {
            'account': identity['Account'],
            'arn': identity['Arn']
        }
    except (BotoCoreError, ClientError) as e:
        return False, {'error': str(e)}


def check_stack_config() -> Tuple[bool, str]:
    """Check the full stack configuration loads"""
    try:
        config = load_stack_config()
        return True, config.stack_name
    except ConfigurationError as e:
        return False, str(e)


def main() -> int:
    print("🔍 TTGO IoT stack environment check")
    print("=" * 60)

    print("\n📋 Required environment variables:")
    missing = []
    for var, present, shown in check_required_vars():
        status = "✅" if present else "❌"
        print(f"  {status} {var}: {shown or 'not set'}")
        if not present:
            missing.append(var)

    print("\n📄 Certificate signing request:")
    csr_ok, csr_info = check_csr(os.environ.get("CSR_PATH", DEFAULT_CSR_PATH))
    print(f"  {'✅' if csr_ok else '❌'} {csr_info}")

    print("\n🔐 AWS credentials:")
    aws_ok, aws_info = check_aws_credentials()
    if aws_ok:
        print(f"  ✅ Account: {aws_info['account']}")
        print(f"     ARN: {aws_info['arn']}")
    else:
        print(f"  ❌ {aws_info['error']}")

    print("\n🧩 Stack configuration:")
    config_ok, config_info = check_stack_config()
    print(f"  {'✅' if config_ok else '❌'} {config_info}")

    print("\n" + "=" * 60)
    if missing or not csr_ok or not aws_ok or not config_ok:
        print("❌ Environment check failed: fix the issues above and run again")
        return 1

    print("✅ Environment check passed: ready for cdk synth")
    return 0


if __name__ == "__main__":
    sys.exit(main())
