"""
Tests for Excel guest import and export
"""

import pytest
import pandas as pd
import io
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rsvp_app.core.db import Base
from rsvp_app.models import Event, Guest
from rsvp_app.services.excel_service import ExcelService
from rsvp_app.services.rsvp_service import RSVPService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def sample_event(db_session):
    """Create a sample event for testing"""
    event = Event(
        title="Test Wedding",
        slug="test-wedding",
        short_code="42"
    )
    db_session.add(event)
    db_session.commit()
    db_session.refresh(event)
    return event

def create_test_excel(data):
    """Helper function to create Excel bytes from data"""
    df = pd.DataFrame(data)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False)
    return buffer.getvalue()

def test_validate_excel_structure_valid():
    """English headers are accepted"""
    df = pd.DataFrame({'First Name': ['Moshe'], 'Last Name': ['Cohen'], 'Phone': ['0501234567']})

    valid, errors = ExcelService.validate_excel_structure(df)
    assert valid
    assert len(errors) == 0

def test_validate_excel_structure_hebrew_headers():
    df = pd.DataFrame({'שם פרטי': ['משה'], 'שם משפחה': ['כהן'], 'טלפון': ['0501234567']})

    valid, errors = ExcelService.validate_excel_structure(df)
    assert valid
    assert ExcelService.detect_columns(df)['phone'] == 'טלפון'

def test_validate_excel_structure_missing_columns():
    """Test Excel structure validation with missing columns"""
    df = pd.DataFrame({'First Name': ['Moshe'], 'Phone': ['0501234567']})

    valid, errors = ExcelService.validate_excel_structure(df)
    assert not valid
    assert 'missing required columns' in errors[0].lower()

def test_validate_excel_structure_empty():
    df = pd.DataFrame(columns=['First Name', 'Last Name', 'Phone'])

    valid, errors = ExcelService.validate_excel_structure(df)
    assert not valid
    assert 'empty' in errors[0].lower()

def test_parse_guest_rows_normalizes_phones():
    df = pd.DataFrame({
        'First Name': ['Moshe', 'Sarah'],
        'Last Name': ['Cohen', 'Levi'],
        'Phone': ['050-123-4567', '972527654321'],
    })

    guests, errors = ExcelService.parse_guest_rows(df)

    assert errors == []
    assert [g['phone'] for g in guests] == ['0501234567', '0527654321']
    assert guests[0]['full_name'] == 'Moshe Cohen'

def test_parse_guest_rows_reports_each_problem():
    df = pd.DataFrame({
        'First Name': ['Moshe', '', 'Dana', 'Avi'],
        'Last Name': ['Cohen', 'Levi', 'Mizrahi', 'Peretz'],
        'Phone': ['0501234567', '0527654321', '12345', '0501234567'],
    })

    guests, errors = ExcelService.parse_guest_rows(df)

    assert len(guests) == 1
    assert len(errors) == 3
    assert errors[0].startswith('Row 3')
    assert 'invalid phone' in errors[1]
    assert 'duplicate phone' in errors[2]

def test_summarize_errors_truncates():
    errors = [f"Row {i}: bad" for i in range(2, 10)]
    summary = ExcelService.summarize_errors(errors)
    assert len(summary) == ExcelService.MAX_REPORTED_ERRORS + 1
    assert summary[-1] == "...and 3 more errors"

def test_process_excel_upload_success(db_session, sample_event):
    """Test successful Excel upload processing"""
    excel_bytes = create_test_excel({
        'First Name': ['Moshe', 'Sarah', 'Avi'],
        'Last Name': ['Cohen', 'Levi', 'Peretz'],
        'Phone': ['0501234567', '0527654321', '0541112233'],
    })

    success, errors, count = ExcelService.process_excel_upload(
        excel_bytes, sample_event.id, db_session
    )

    assert success
    assert len(errors) == 0
    assert count == 3

    # Leading zeros survive the round trip through the sheet
    phones = {g.phone for g in db_session.query(Guest).filter(Guest.event_id == sample_event.id).all()}
    assert phones == {'0501234567', '0527654321', '0541112233'}

def test_process_excel_upload_rejects_existing_phone(db_session, sample_event):
    """A phone already in the event fails the whole file"""
    db_session.add(Guest(event_id=sample_event.id, full_name="Existing", phone="0501234567"))
    db_session.commit()

    excel_bytes = create_test_excel({
        'First Name': ['Moshe', 'Sarah'],
        'Last Name': ['Cohen', 'Levi'],
        'Phone': ['0527654321', '050-123-4567'],
    })

    success, errors, count = ExcelService.process_excel_upload(
        excel_bytes, sample_event.id, db_session
    )

    assert not success
    assert count == 0
    assert 'duplicate phone' in errors[0]

    # Verify no data was inserted
    guests = db_session.query(Guest).filter(Guest.event_id == sample_event.id).all()
    assert len(guests) == 1

def test_process_excel_upload_empty_file(db_session, sample_event):
    success, errors, count = ExcelService.process_excel_upload(b"", sample_event.id, db_session)
    assert not success
    assert count == 0

def test_process_excel_upload_unreadable_file(db_session, sample_event):
    success, errors, count = ExcelService.process_excel_upload(b"not a workbook", sample_event.id, db_session)
    assert not success
    assert errors[0].startswith("Error reading Excel file")

def test_create_template():
    """Test Excel template creation"""
    template_bytes = ExcelService.create_template()

    assert template_bytes is not None
    assert len(template_bytes) > 0

    # Verify template structure
    df = pd.read_excel(io.BytesIO(template_bytes))
    for col in ['First Name', 'Last Name', 'Phone']:
        assert col in df.columns

def test_export_guests(db_session, sample_event):
    guest = Guest(event_id=sample_event.id, full_name="Moshe Cohen", phone="0501234567", short_code="k3x9qa")
    db_session.add(guest)
    db_session.commit()
    RSVPService.submit(db_session, sample_event.id, guest_id=guest.id, men_count=2, women_count=1)

    content = ExcelService.export_guests(db_session, sample_event)

    sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, dtype=str)
    assert set(sheets) == {'Guest List', 'Summary'}
    row = sheets['Guest List'].iloc[0]
    assert row['Full Name'] == 'Moshe Cohen'
    assert row['Responded'] == 'Yes'
    assert row['Confirmed Men'] == '2'
    assert row['Personal Link'].endswith('/rsvp/42/k3x9qa')

def test_export_submissions_has_answer_columns(db_session, sample_event):
    RSVPService.submit(db_session, sample_event.id, full_name="Dana", men_count=0, women_count=1,
                       answers={"meal": "veg"})
    RSVPService.submit(db_session, sample_event.id, full_name="Avi", men_count=1, women_count=0,
                       answers={"song": "yes"})

    content = ExcelService.export_submissions(db_session, sample_event)

    df = pd.read_excel(io.BytesIO(content), sheet_name='Submissions')
    assert len(df) == 2
    assert {'meal', 'song'} <= set(df.columns)
