from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class Student(db.Model):
    """Проживание студента: связывает пользователя с общежитием."""
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)  # номер студбилета
    hostel_id: Mapped[int] = mapped_column(ForeignKey("hostels.id", ondelete="RESTRICT"), nullable=False, index=True)

    user = relationship("User", back_populates="student")
    hostel = relationship("Hostel")

    def __repr__(self):
        return f"<Student {self.student_id}>"
