from sqlalchemy import Column, Integer, String, DateTime, Text

from clinic_api.database import Base


class PatientRecord(Base):
    __tablename__ = "patients"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)


class AppointmentRecord(Base):
    __tablename__ = "appointments"

    pk = Column(Integer, primary_key=True, index=True)
    id = Column(String, unique=True, index=True, nullable=False)
    start = Column(DateTime, nullable=False, index=True)
    end = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default="pending")
    observation = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)

    # Plain reference, no foreign key: patients may live outside this database.
    # patient_name is the display cache filled in at save time.
    patient_id = Column(String, nullable=False, index=True)
    patient_name = Column(String, nullable=False)
