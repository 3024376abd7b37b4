"""FastAPI application for the folgezettel local JSON API."""

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .. import __version__
from ..core.address import extract_address, kind_of, parse_address
from ..core.algebra import canonical, last_segment_kind, parent_of
from ..core.model import Note
from ..core.suggest import suggest_next_child, validate_address
from ..errors import DuplicateAddress, LookupMiss, ParseFailure


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Create FastAPI application with runtime injected.

    Args:
        runtime: Runtime instance with host, index and linker
        token: Bearer token for authentication (None to disable auth)
        enable_cors: Enable CORS middleware

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Folgezettel API",
        description="Local JSON API for folgezettel addresses and links",
        version=__version__,
        docs_url="/docs" if token is None else None,
        redoc_url="/redoc" if token is None else None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if token:
        security_scheme = HTTPBearer(auto_error=False)

        async def verify_token(
            credentials: HTTPAuthorizationCredentials | None = Security(security_scheme),  # noqa: B008
        ) -> None:
            """Verify bearer token."""
            if credentials is None or credentials.credentials != token:
                raise HTTPException(status_code=401, detail="Invalid or missing token")
    else:

        async def verify_token() -> None:
            """No-op when auth is disabled."""
            return None

    def note_at(path: str) -> Note:
        for note in runtime.host.list_all_notes():
            if note.path == path:
                return note
        raise HTTPException(status_code=404, detail=f"Note {path} not found")

    def address_of(note: Note) -> str:
        address = extract_address(note.basename)
        if not address:
            raise HTTPException(
                status_code=422, detail=f"No folgezettel address in title: {note.basename}"
            )
        return address

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/addresses/{address}")
    async def describe_address(address: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Parse an address and report its place in the tree."""
        try:
            parsed = parse_address(address)
        except ParseFailure as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        parent = parent_of(parsed)
        existing = runtime.index.find_by_exact_address(address)
        return {
            "raw": parsed.raw,
            "canonical": canonical(parsed),
            "segments": [s.value for s in parsed.segments],
            "kinds": [kind_of(s) for s in parsed.segments],
            "parent": parent.raw if parent else None,
            "last_kind": last_segment_kind(parsed),
            "children": runtime.index.children_of(address),
            "next_child": suggest_next_child(runtime.index, address),
            "note": existing.path if existing else None,
        }

    @app.get("/suggest")
    async def suggest(
        path: str = Query(..., description="Vault-relative note path"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Suggest the next child address for a note (read-only)."""
        note = note_at(path)
        validation = validate_address(
            runtime.index, suggest_next_child(runtime.index, address_of(note))
        )
        return {
            "address": validation.address,
            "is_duplicate": validation.is_duplicate,
            "existing": validation.existing_note.path if validation.existing_note else None,
            "message": validation.message,
        }

    @app.post("/children")
    async def create_child(
        path: str = Query(..., description="Vault-relative path of the parent note"),
        confirm: bool = Query(False, description="Create even if the address is taken"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Create the next child note of a note."""
        note = note_at(path)
        validation = validate_address(
            runtime.index, suggest_next_child(runtime.index, address_of(note))
        )
        if validation.is_duplicate and not confirm:
            err = DuplicateAddress(validation.address, validation.existing_note)
            raise HTTPException(status_code=409, detail=str(err))

        created = await runtime.linker.create_note_with_address(validation.address, note.folder)
        if created is None:
            raise HTTPException(
                status_code=500, detail=f"Failed to create note for {validation.address}"
            )
        return {"address": validation.address, "path": created.path}

    @app.post("/backlink")
    async def backlink(
        path: str = Query(..., description="Vault-relative note path"),
        auth: None = Depends(verify_token),
    ) -> dict[str, Any]:
        """Link a note and its parent both ways."""
        note = note_at(path)
        address = address_of(note)
        parent = parent_of(parse_address(address))
        if parent is None:
            raise HTTPException(status_code=422, detail=f"{address} is a root address")
        if runtime.index.find_by_exact_address(parent.raw) is None:
            raise HTTPException(status_code=404, detail=str(LookupMiss("Parent note", parent.raw)))

        inserted = await runtime.linker.add_backlink_to_parent(note)
        return {"inserted": inserted, "parent": parent.raw}

    @app.get("/duplicates")
    async def duplicates(auth: None = Depends(verify_token)) -> dict[str, list[str]]:
        """Addresses used by more than one note."""
        return {
            address: [n.path for n in notes]
            for address, notes in runtime.index.duplicates().items()
        }

    return app


def generate_token() -> str:
    """Generate a random bearer token."""
    return secrets.token_urlsafe(32)
