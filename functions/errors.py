class FallbackError(Exception):
    pass


class ConfigError(FallbackError):
    pass


class MalformedEvent(FallbackError):
    """The CloudFront event has no response record to act on."""


class StorageAccessError(FallbackError):
    """S3 failed with anything other than a definitive "no such key".

    Never coerced into a passthrough: a permission or network problem on the
    bucket must surface as an error instead of looking like a missing page.
    """

    def __init__(self, bucket, key, code):
        super().__init__(f"s3://{bucket}/{key}: {code}")
        self.bucket = bucket
        self.key = key
        self.code = code
