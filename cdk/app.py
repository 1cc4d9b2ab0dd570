#!/usr/bin/env python3
import os
import aws_cdk as cdk
from stacks.edge_fallback_stack import EdgeFallbackStack, options_from_context

app = cdk.App()

env = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION", "us-east-1")  # Lambda@Edge functions are created in us-east-1
)

try:
    options = options_from_context(app.node.try_get_context, env.account, env.region)
except ValueError as e:
    raise SystemExit(str(e))

EdgeFallbackStack(app, app.node.try_get_context("stack_name") or "EdgeFallbackStack",
                  env=env,
                  **options)

app.synth()
