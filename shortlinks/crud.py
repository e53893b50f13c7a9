import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shortlinks import models

logger = logging.getLogger("shortlinks")

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 7
MAX_CODE_ATTEMPTS = 10


class CodeSpaceExhausted(Exception):
    def __init__(self, attempts: int):
        super().__init__(f"No unused code found after {attempts} attempts")
        self.attempts = attempts


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def get_link(db: Session, code: str) -> models.Link | None:
    return db.query(models.Link).filter_by(code=code).first()


def code_exists(db: Session, code: str) -> bool:
    return db.query(models.Link.id).filter_by(code=code).first() is not None


def insert_link(db: Session, code: str, original_url: str, title: str | None) -> models.Link:
    link = models.Link(code=code, original_url=original_url, title=title, clicks=0)
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(link)
    return link


def create_link(db: Session, original_url: str, title: str | None) -> models.Link:
    """Mint a fresh code for ``original_url`` and store it.

    Check-then-insert: a concurrent writer can still take the same code
    between the check and the insert, in which case the unique constraint
    rejects ours and the attempt counts as a collision.
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code()
        if code_exists(db, code):
            logger.debug("Code collision on %s, retrying", code)
            continue
        try:
            return insert_link(db, code, original_url, title)
        except IntegrityError:
            logger.warning("Code %s was taken concurrently, retrying", code)
    logger.error("Gave up generating a code after %d attempts", MAX_CODE_ATTEMPTS)
    raise CodeSpaceExhausted(MAX_CODE_ATTEMPTS)


def increment_clicks(db: Session, link_id: int) -> None:
    db.query(models.Link).filter(models.Link.id == link_id).update(
        {models.Link.clicks: models.Link.clicks + 1}, synchronize_session=False
    )
    db.commit()
