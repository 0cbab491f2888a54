from typing import Optional

from splicer.core.common.enums import DeliveryMode, OutputContainer
from splicer.core.config.settings import Settings, settings as default_settings
from ..domain.interfaces import IResultSink
from ..data.s3_sink import S3Sink
from ..data.streaming_sink import StreamingSink


def build_sink(config: Optional[Settings] = None) -> IResultSink:
    """
    One delivery mode per deployment, picked from DELIVERY_MODE.
    """
    config = config or default_settings
    mode = DeliveryMode(config.DELIVERY_MODE)
    container = OutputContainer(config.OUTPUT_CONTAINER)

    if mode == DeliveryMode.S3:
        return S3Sink(bucket=config.S3_BUCKET, prefix=config.S3_PREFIX, region=config.AWS_REGION,
                      container=container)
    return StreamingSink(container=container, chunk_size=config.STREAM_CHUNK_BYTES)
