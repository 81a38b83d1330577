from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class Classification(db.Model):
    """Explicit marker for a (congregation, language) pair.

    Rows are optional; pairs without one get a computed color.
    """
    id: Mapped[int] = mapped_column(primary_key=True)
    congregation_id: Mapped[int] = mapped_column(Integer, nullable=False)
    language_name: Mapped[str] = mapped_column(String(64), nullable=False)  # lower-case
    pin_color: Mapped[int | None] = mapped_column(Integer)
    pin_image: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (
        UniqueConstraint("congregation_id", "language_name", name="uq_classification_cong_lang"),
    )

    def __repr__(self):
        return f"<Classification {self.congregation_id}/{self.language_name}>"
