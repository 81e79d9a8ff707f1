import structlog

from .schemas import ObjectReference
from .storage import backend_errors

logger = structlog.get_logger()

DEFAULT_EXPIRY = 3600

class SignedUrlGenerator:
    """Presigned GET URLs so clients fetch object bytes straight from the store.

    The client must have been built with signing credentials; build_client
    refuses to start in signed-URL mode otherwise.
    """

    def __init__(self, client, expires_in: int = DEFAULT_EXPIRY):
        self.client = client
        self.expires_in = expires_in

    def sign(self, ref: ObjectReference) -> str:
        with backend_errors():
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": ref.bucket, "Key": ref.key},
                ExpiresIn=self.expires_in,
            )
        logger.debug("signed_url_generated", bucket=ref.bucket, key=ref.key, expires_in=self.expires_in)
        return url
