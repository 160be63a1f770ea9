"""
API endpoints for browsing, tagging, and uploading media.
"""


from typing import List, Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
)
from fastapi.responses import Response
from loguru import logger

from ..media.catalog import Catalog, CatalogScanError, filter_records
from ..media.models import InvalidTagError, MediaKind
from ..media.name_codec import decode
from ..media.tag_mutator import TagMutator
from ..media.thumbnails import video_thumbnail
from ..media.uploader import PendingUpload, Uploader
from ..repository import (
    NotFoundError,
    RepositoryClient,
    RepositoryOperationError,
)
from ..repository.backend_manager import repository_client
from .dependencies import catalog, tag_mutator, uploader
from .schemas import (
    HealthResponse,
    MediaListResponse,
    TagRequest,
    TagResponse,
    TagResult,
    TagsResponse,
    UploadResponse,
)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    client: RepositoryClient = Depends(repository_client),
) -> HealthResponse:
    """
    Checks whether the repository is reachable.

    Args:
        client: The repository to check.

    Returns:
        The status.

    """
    return HealthResponse(
        repository_reachable=await client.check_connection()
    )


@router.get("/tags", response_model=TagsResponse)
async def list_tags(
    media_catalog: Catalog = Depends(catalog),
) -> TagsResponse:
    """
    Lists every tag that is in use.

    Args:
        media_catalog: The catalog to use.

    Returns:
        The tags.

    """
    try:
        tags = await media_catalog.all_tags()
    except CatalogScanError as error:
        raise HTTPException(status_code=502, detail=str(error))

    return TagsResponse(tags=tags)


@router.get("/media/thumbnail")
async def get_thumbnail(
    path: str,
    client: RepositoryClient = Depends(repository_client),
) -> Response:
    """
    Gets a thumbnail for a video.

    Args:
        path: The path of the video.
        client: The repository to use.

    Returns:
        The thumbnail, as a JPEG.

    """
    if decode(path).kind != MediaKind.VIDEO:
        raise HTTPException(
            status_code=404, detail=f"'{path}' is not a video."
        )

    try:
        video = await client.get_file(path)
    except NotFoundError:
        raise HTTPException(
            status_code=404, detail=f"Video '{path}' does not exist."
        )
    except RepositoryOperationError as error:
        raise HTTPException(status_code=502, detail=str(error))

    thumbnail = await video_thumbnail(video.content)
    if thumbnail is None:
        raise HTTPException(
            status_code=404, detail=f"Could not create thumbnail for '{path}'."
        )

    return Response(content=thumbnail, media_type="image/jpeg")


@router.get("/media/{kind}", response_model=MediaListResponse)
async def list_media(
    kind: MediaKind,
    search: Optional[str] = None,
    tag: Optional[str] = None,
    media_catalog: Catalog = Depends(catalog),
) -> MediaListResponse:
    """
    Lists media, grouped by date. If part of the repository could not be
    scanned, whatever could be scanned is still returned, along with the
    errors.

    Args:
        kind: The kind of media to list.
        search: If specified, only show media whose name or tags contain
            this.
        tag: If specified, only show media with this tag.
        media_catalog: The catalog to use.

    Returns:
        The media that was found.

    """
    result = await media_catalog.scan(kind)
    filtered = filter_records(result.records, search=search, tag=tag)
    logger.debug(
        "{} of {} {} matched.", len(filtered), len(result.records), kind.folder
    )

    return MediaListResponse.from_scan(
        result.model_copy(update=dict(records=filtered))
    )


@router.post("/media/tags", response_model=TagResponse)
async def add_tags(
    request: TagRequest = Body(...),
    mutator: TagMutator = Depends(tag_mutator),
) -> TagResponse:
    """
    Adds tags to existing media.

    Args:
        request: Specifies the files and the tags.
        mutator: The `TagMutator` to use.

    Returns:
        The result for each file.

    """
    try:
        results = await mutator.add_tags(request.paths, request.tags)
    except InvalidTagError as error:
        raise HTTPException(status_code=422, detail=str(error))

    return TagResponse(results=[TagResult.from_result(r) for r in results])


@router.post("/media/upload", response_model=UploadResponse)
async def upload_media(
    files: List[UploadFile] = File(...),
    tags: str = Form(""),
    media_uploader: Uploader = Depends(uploader),
) -> UploadResponse:
    """
    Uploads new media.

    Args:
        files: The files to upload.
        tags: Comma-separated tags to add to all the files.
        media_uploader: The `Uploader` to use.

    Returns:
        The result for each file.

    """
    tag_list = tags.split(",")
    pending = [
        PendingUpload(
            display_name=f.filename or "",
            content=await f.read(),
            tags=tag_list,
        )
        for f in files
    ]

    results = [r async for r in media_uploader.upload_all(pending)]
    logger.info(
        "Uploaded {} of {} files.",
        sum(r.succeeded for r in results),
        len(results),
    )
    return UploadResponse(results=results)
