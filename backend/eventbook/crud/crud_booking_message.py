from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models, schemas


def create_message(
    db: Session,
    booking_id: int,
    sender_id: int,
    sender_type: models.SenderType,
    message_in: schemas.BookingMessageCreate,
) -> models.BookingMessage:
    attachments = [a.model_dump(mode="json") for a in message_in.attachments]
    db_message = models.BookingMessage(
        booking_id=booking_id,
        sender_id=sender_id,
        sender_type=sender_type,
        message=message_in.message,
        attachments=attachments or None,
    )
    db.add(db_message)
    db.flush()
    return db_message


def get_messages_for_booking(
    db: Session, booking_id: int, skip: int = 0, limit: Optional[int] = None
) -> List[models.BookingMessage]:
    query = (
        db.query(models.BookingMessage)
        .filter(models.BookingMessage.booking_id == booking_id)
        .order_by(models.BookingMessage.sent_at.asc(), models.BookingMessage.id.asc())
        .offset(skip)
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()
