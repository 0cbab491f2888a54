from pathlib import Path
from typing import Dict, Optional

from splicer.core.common.enums import SourceKind
from splicer.core.errors import SourceUnavailable
from splicer.core.jobs.models import SourceReference
from splicer.features.workspace.domain.models import Workspace
from ..domain.interfaces import ISourceProvider
from ..data.http_fetcher import RemoteSourceProvider
from ..data.upload_provider import UploadSourceProvider


class CompositeSourceProvider(ISourceProvider):
    """
    Routes a SourceReference to the provider registered for its kind.
    """

    def __init__(self, providers: Optional[Dict[SourceKind, ISourceProvider]] = None):
        self.providers = providers or {
            SourceKind.UPLOAD: UploadSourceProvider(),
            SourceKind.URL: RemoteSourceProvider(),
        }

    def materialize(self, source: SourceReference, workspace: Workspace) -> Path:
        provider = self.providers.get(source.kind)
        if provider is None:
            raise SourceUnavailable(f"No provider registered for source kind: {source.kind}")
        return provider.materialize(source, workspace)
