from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class Hostel(db.Model):
    __tablename__ = "hostels"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)

    def __repr__(self):
        return f"<Hostel {self.code}>"
