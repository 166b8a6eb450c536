"""
Public certificate verification endpoint.
"""

from fastapi import APIRouter, Depends, HTTPException, Path

from ...services.verification import CertificateVerificationService
from ..dependencies import get_verification_service

router = APIRouter(prefix="/verify", tags=["verification"])


@router.get("/{identifier}")
async def verify_certificate(
    identifier: str = Path(..., min_length=1, max_length=64),
    service: CertificateVerificationService = Depends(get_verification_service),
):
    """Verify a graduate's certificate by student identifier."""
    if not identifier.strip():
        raise HTTPException(status_code=422, detail="Identifier cannot be blank")
    result = await service.verify(identifier)
    return result.to_dict()
