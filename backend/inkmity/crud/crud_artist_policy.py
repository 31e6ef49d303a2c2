from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas


def get_policy(db: Session, artist_id: str) -> Optional[models.ArtistPolicy]:
    return db.query(models.ArtistPolicy).filter(models.ArtistPolicy.artist_id == artist_id).first()


def upsert_policy(
    db: Session, artist_id: str, data: schemas.ArtistPolicyUpdate
) -> models.ArtistPolicy:
    row = get_policy(db, artist_id)
    if row is None:
        row = models.ArtistPolicy(artist_id=artist_id)
        db.add(row)
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row
