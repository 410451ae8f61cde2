from sqlalchemy import Column, Date, Enum, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

# Stored day_of_week columns use the Sunday-first convention (0 = Sunday).
# Conversion to the Monday-first convention happens in the record store.


class Therapists(Base):
    __tablename__ = 'therapists'

    name = Column(Text, nullable=False)
    specialty = Column(Text, nullable=False)
    color = Column(Text, nullable=False, server_default=text("'#3b82f6'"))
    id = Column(Integer, primary_key=True)
    email = Column(Text)
    phone = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    working_hours = relationship(
        'TherapistWorkingHours',
        back_populates='therapist',
        cascade='all, delete-orphan',
    )
    appointments = relationship('Appointments', back_populates='therapist')


class Clients(Base):
    __tablename__ = 'clients'

    first_name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    last_name = Column(Text)
    email = Column(Text)
    phone = Column(Text)
    notes = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    availability = relationship(
        'ClientAvailability',
        back_populates='client',
        cascade='all, delete-orphan',
    )
    appointments = relationship('Appointments', back_populates='client')


class TherapistWorkingHours(Base):
    __tablename__ = 'therapist_working_hours'

    therapist_id = Column(ForeignKey('therapists.id', ondelete='CASCADE'), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)

    therapist = relationship('Therapists', back_populates='working_hours')


class ClientAvailability(Base):
    __tablename__ = 'client_availability'

    client_id = Column(ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)

    client = relationship('Clients', back_populates='availability')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        Index('ix_appointments_therapist_date', 'therapist_id', 'date'),
        Index('ix_appointments_series_date', 'series_id', 'date'),
    )

    therapist_id = Column(ForeignKey('therapists.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('60'))
    status = Column(Enum('pending', 'confirmed', 'cancelled', name='appointment_status'), nullable=False, server_default=text("'pending'"))
    frequency = Column(Enum('puntual', 'semanal', 'quincenal', name='appointment_frequency'), nullable=False, server_default=text("'puntual'"))
    id = Column(Integer, primary_key=True)
    series_id = Column(Text)
    notes = Column(Text)
    pending_reason = Column(Text)
    optimization_score = Column(Integer)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    therapist = relationship('Therapists', back_populates='appointments')
    client = relationship('Clients', back_populates='appointments')
