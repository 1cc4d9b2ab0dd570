import json, re, shutil, tempfile
from pathlib import Path
from typing import Optional
from aws_cdk import (
    Stack,
    Duration,
    Token,
    RemovalPolicy,
    CfnOutput,
    aws_s3 as s3,
    aws_cloudfront as cf,
    aws_cloudfront_origins as origins,
    aws_certificatemanager as acm,
    aws_lambda as _lambda,
    aws_route53 as route53,
    aws_route53_targets as targets,
    aws_s3_deployment as s3deploy,
)
from constructs import Construct

FUNCTIONS_DIR = Path(__file__).resolve().parents[2] / "functions"

HANDLERS = {
    "probe": "fallback_probe.handler",
    "infer": "fallback_infer.handler",
}


def parse_server_origin(server_origin: str):
    # "https://abc123.execute-api.eu-west-1.amazonaws.com/prod/" -> ("abc123.execute-api.eu-west-1.amazonaws.com", "/prod")
    m = re.match(r"(?:https?://)?([^/]+)/?(.*)", server_origin)
    host, path = m.group(1), m.group(2).strip("/")
    return host, ("/" + path if path else None)


def stage_functions(config: dict, staging_dir: Optional[str] = None) -> str:
    """Copy the handler modules somewhere writable and drop fallback.json beside them."""
    target = Path(staging_dir or tempfile.mkdtemp(prefix="edge-fallback-")) / "functions"
    if target.exists():
        shutil.rmtree(target)
    shutil.copytree(FUNCTIONS_DIR, target,
                    ignore=shutil.ignore_patterns("__pycache__", "*.pyc", "fallback.json"))
    (target / "fallback.json").write_text(json.dumps(config, indent=2, sort_keys=True))
    return str(target)


def options_from_context(ctx, account: Optional[str], region: str) -> dict:
    """Turn CDK context values into EdgeFallbackStack keyword arguments."""
    server_origin = ctx("server_origin")
    if not server_origin:
        raise ValueError("pass the SSR origin with -c server_origin=https://<api-id>.execute-api.<region>.amazonaws.com/<stage>/")

    # "probe" checks S3 before redirecting; "infer" redirects on path shape and
    # expects the default behaviour to fail over to the bucket
    strategy = ctx("strategy") or "probe"
    origin_failover = ctx("origin_failover")
    if origin_failover is None:
        origin_failover = strategy == "infer"
    elif isinstance(origin_failover, str):
        origin_failover = origin_failover.strip().lower() == "true"

    assets_bucket_name = ctx("assets_bucket_name")
    if not assets_bucket_name:
        if not account or Token.is_unresolved(account):
            raise ValueError("pass -c assets_bucket_name=<name> or set CDK_DEFAULT_ACCOUNT")
        assets_bucket_name = f"edge-fallback-assets-{account}-{region}"

    return {
        "server_origin": server_origin,
        "assets_bucket_name": assets_bucket_name,
        "strategy": strategy,
        "origin_failover": bool(origin_failover),
        "domain_name": ctx("domain_name"),
        "certificate_arn": ctx("certificate_arn"),
        "hosted_zone_id": ctx("hosted_zone_id"),
        "assets_dir": ctx("assets_dir"),
        "log_level": ctx("log_level") or "INFO",
    }


class EdgeFallbackStack(Stack):
    def __init__(self, scope: Construct, construct_id: str,
                 server_origin: str,
                 assets_bucket_name: str,
                 strategy: str = "probe",
                 origin_failover: bool = False,
                 domain_name: Optional[str] = None,
                 certificate_arn: Optional[str] = None,
                 hosted_zone_id: Optional[str] = None,
                 assets_dir: Optional[str] = None,
                 log_level: str = "INFO",
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if strategy not in HANDLERS:
            raise ValueError(f"strategy must be one of {sorted(HANDLERS)}, got {strategy!r}")
        if Token.is_unresolved(self.region):
            raise ValueError("EdgeFallbackStack needs an explicit env region, fallback.json cannot hold tokens")

        # Static assets bucket (OAC only)
        assets_bucket = s3.Bucket(self, "AssetsBucket",
                                  bucket_name=assets_bucket_name,
                                  block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
                                  encryption=s3.BucketEncryption.S3_MANAGED,
                                  enforce_ssl=True,
                                  removal_policy=RemovalPolicy.DESTROY,
                                  auto_delete_objects=True)

        # Lambda@Edge has no environment variables; settings travel in the asset
        code_dir = stage_functions({
            "bucket": assets_bucket_name,
            "region": self.region,
            "strategy": strategy,
            "log_level": log_level,
        }, self.node.try_get_context("staging_dir"))

        fallback_fn = cf.experimental.EdgeFunction(self, "FallbackEdgeFunction",
                                                   runtime=_lambda.Runtime.PYTHON_3_12,
                                                   handler=HANDLERS[strategy],
                                                   code=_lambda.Code.from_asset(code_dir),
                                                   memory_size=128,
                                                   timeout=Duration.seconds(5),
                                                   description=f"Origin-response fallback ({strategy})")

        # The probe needs s3:GetObject and s3:ListBucket to tell 404 from 403
        assets_bucket.grant_read(fallback_fn)

        s3_origin = origins.S3BucketOrigin.with_origin_access_control(assets_bucket)

        host, origin_path = parse_server_origin(server_origin)
        server_http_origin = origins.HttpOrigin(host,
                                                origin_path=origin_path,
                                                protocol_policy=cf.OriginProtocolPolicy.HTTPS_ONLY,
                                                connection_attempts=2,
                                                connection_timeout=Duration.seconds(2),
                                                read_timeout=Duration.seconds(10))

        default_origin = server_http_origin
        if origin_failover:
            default_origin = origins.OriginGroup(primary_origin=server_http_origin,
                                                 fallback_origin=s3_origin,
                                                 fallback_status_codes=[404])

        edge_lambdas = [cf.EdgeLambda(event_type=cf.LambdaEdgeEventType.ORIGIN_RESPONSE,
                                      function_version=fallback_fn.current_version)]

        default_behavior = cf.BehaviorOptions(
            origin=default_origin,
            compress=True,
            allowed_methods=cf.AllowedMethods.ALLOW_GET_HEAD,
            viewer_protocol_policy=cf.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            cache_policy=cf.CachePolicy.CACHING_DISABLED,
            edge_lambdas=edge_lambdas,
        )

        additional_behaviors = {
            "*.*": cf.BehaviorOptions(
                origin=s3_origin,
                compress=True,
                allowed_methods=cf.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
                cached_methods=cf.CachedMethods.CACHE_GET_HEAD_OPTIONS,
                cache_policy=cf.CachePolicy.CACHING_OPTIMIZED,
                viewer_protocol_policy=cf.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                edge_lambdas=edge_lambdas,
            )
        }

        certificate = None
        if domain_name and certificate_arn:
            certificate = acm.Certificate.from_certificate_arn(self, "Cert", certificate_arn)

        distribution = cf.Distribution(self, "Distribution",
                                       default_behavior=default_behavior,
                                       additional_behaviors=additional_behaviors,
                                       certificate=certificate,
                                       domain_names=[domain_name] if certificate else None,
                                       minimum_protocol_version=cf.SecurityPolicyProtocol.TLS_V1_2_2021,
                                       http_version=cf.HttpVersion.HTTP2_AND_3,
                                       comment=f"{construct_id} ({strategy} fallback)")

        # Optionally create Route53 record if the hosted zone is in Route53
        if certificate and hosted_zone_id:
            zone = route53.HostedZone.from_hosted_zone_attributes(
                self, "HZ",
                hosted_zone_id=hosted_zone_id,
                zone_name=domain_name
            )
            route53.ARecord(self, "AliasRecord",
                            zone=zone,
                            target=route53.RecordTarget.from_alias(targets.CloudFrontTarget(distribution)))
            route53.AaaaRecord(self, "AliasRecordIpv6",
                               zone=zone,
                               target=route53.RecordTarget.from_alias(targets.CloudFrontTarget(distribution)))

        if assets_dir:
            s3deploy.BucketDeployment(self, "DeployAssets",
                                      destination_bucket=assets_bucket,
                                      sources=[s3deploy.Source.asset(assets_dir)],
                                      distribution=distribution,
                                      distribution_paths=["/*"])

        CfnOutput(self, "DistributionDomainName", value=distribution.distribution_domain_name)
        CfnOutput(self, "AssetsBucketName", value=assets_bucket.bucket_name)

        self.assets_bucket = assets_bucket
        self.fallback_function = fallback_fn
        self.distribution = distribution
        self.distribution_domain = distribution.distribution_domain_name
