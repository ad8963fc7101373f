"""
Excel processing service for guest import and RSVP export
"""

import io
from datetime import datetime
from typing import Any, Dict, List, Tuple
import pandas as pd
from sqlalchemy.orm import Session

from rsvp_app.models import Event, Guest
from rsvp_app.services.guest_service import GuestService
from rsvp_app.services.link_service import LinkService
from rsvp_app.services.rsvp_service import RSVPService
from rsvp_app.utils.phone import is_valid_phone, normalize_phone

class ExcelService:
    """Service for handling Excel operations"""

    # Either the English or the Hebrew header set is accepted
    COLUMN_SETS = {
        'en': {'first_name': 'First Name', 'last_name': 'Last Name', 'phone': 'Phone'},
        'he': {'first_name': 'שם פרטי', 'last_name': 'שם משפחה', 'phone': 'טלפון'},
    }
    MAX_REPORTED_ERRORS = 5
    XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with required columns"""
        df = pd.DataFrame(
            [
                ['Moshe', 'Cohen', '0501234567'],
                ['Sarah', 'Levi', '0527654321'],
            ],
            columns=['First Name', 'Last Name', 'Phone']
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def detect_columns(df: pd.DataFrame) -> Dict[str, str]:
        """Map logical fields to the file's headers, empty when no set matches"""
        present = {str(col).strip(): col for col in df.columns}
        for columns in ExcelService.COLUMN_SETS.values():
            if all(header in present for header in columns.values()):
                return {field: present[header] for field, header in columns.items()}
        return {}

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []

        if df.empty:
            errors.append("File is empty or contains no data")
        elif not ExcelService.detect_columns(df):
            errors.append(
                'Missing required columns: "First Name", "Last Name" and "Phone" '
                '(or "שם פרטי", "שם משפחה" and "טלפון")'
            )

        return len(errors) == 0, errors

    @staticmethod
    def _cell(row: pd.Series, column: str) -> str:
        value = row[column]
        if pd.isna(value):
            return ''
        return str(value).strip()

    @staticmethod
    def parse_guest_rows(df: pd.DataFrame, existing_phones: set = None) -> Tuple[List[Dict[str, Any]], List[str]]:
        """Turn sheet rows into guest dicts, collecting per-row errors"""
        columns = ExcelService.detect_columns(df)
        seen_phones = set(existing_phones or ())
        guests: List[Dict[str, Any]] = []
        errors: List[str] = []

        for index, row in df.iterrows():
            row_num = index + 2  # header is row 1
            first_name = ExcelService._cell(row, columns['first_name'])
            last_name = ExcelService._cell(row, columns['last_name'])
            phone = ExcelService._cell(row, columns['phone'])

            if not first_name:
                errors.append(f'Row {row_num}: "First Name" is empty')
                continue
            if not last_name:
                errors.append(f'Row {row_num}: "Last Name" is empty')
                continue
            if not phone:
                errors.append(f'Row {row_num}: "Phone" is empty')
                continue
            if not is_valid_phone(phone):
                errors.append(f'Row {row_num}: invalid phone number - {phone}')
                continue

            normalized = normalize_phone(phone)
            if normalized in seen_phones:
                errors.append(f'Row {row_num}: duplicate phone number - {normalized}')
                continue
            seen_phones.add(normalized)

            guests.append({
                'first_name': first_name,
                'last_name': last_name,
                'full_name': f"{first_name} {last_name}",
                'phone': normalized,
            })

        return guests, errors

    @staticmethod
    def summarize_errors(errors: List[str]) -> List[str]:
        if len(errors) <= ExcelService.MAX_REPORTED_ERRORS:
            return errors
        hidden = len(errors) - ExcelService.MAX_REPORTED_ERRORS
        return errors[:ExcelService.MAX_REPORTED_ERRORS] + [f"...and {hidden} more errors"]

    @staticmethod
    def process_excel_upload(
        file_content: bytes,
        event_id: str,
        db: Session
    ) -> Tuple[bool, List[str], int]:
        """Validate an uploaded guest list and add every row, or nothing"""
        if not file_content:
            return False, ["File is empty or contains no data"], 0

        try:
            # Phones must stay text so leading zeros survive
            df = pd.read_excel(io.BytesIO(file_content), dtype=str)
        except Exception as e:
            return False, [f"Error reading Excel file: {str(e)}"], 0

        valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
        if not valid_structure:
            return False, structure_errors, 0

        existing_phones = {
            phone for (phone,) in db.query(Guest.phone).filter(
                Guest.event_id == event_id,
                Guest.phone.isnot(None)
            ).all()
        }
        guests, row_errors = ExcelService.parse_guest_rows(df, existing_phones)
        if row_errors:
            return False, ExcelService.summarize_errors(row_errors), 0
        if not guests:
            return False, ["File is empty or contains no data"], 0

        try:
            processed_count = GuestService.bulk_create(db, event_id, guests)
        except Exception:
            db.rollback()
            raise
        return True, [], processed_count

    @staticmethod
    def _write_sheets(sheets: Dict[str, pd.DataFrame]) -> bytes:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            for name, df in sheets.items():
                df.to_excel(writer, index=False, sheet_name=name)
        return buffer.getvalue()

    @staticmethod
    def export_guests(db: Session, event: Event) -> bytes:
        """Guest list with personal links and confirmed counts, plus a summary sheet"""
        guests = GuestService.all_guests(db, event.id)
        totals = RSVPService.aggregate_guest_totals(db, event.id)
        event_token = LinkService.event_token(db, event)

        rows = []
        for index, guest in enumerate(guests, start=1):
            men, women = totals.get(guest.id, (0, 0))
            slug = guest.short_code or guest.phone
            rows.append({
                'No.': index,
                'Full Name': guest.display_name,
                'Phone': guest.phone or '',
                'Invited Men': guest.men_count or 0,
                'Invited Women': guest.women_count or 0,
                'Invited Total': (guest.men_count or 0) + (guest.women_count or 0),
                'Responded': 'Yes' if guest.id in totals else 'No',
                'Confirmed Men': men,
                'Confirmed Women': women,
                'Personal Link': LinkService.build_public_url(event_token, slug) if slug else '',
                'Registered': guest.created_at.strftime('%d/%m/%Y') if guest.created_at else '',
            })

        columns = [
            'No.', 'Full Name', 'Phone', 'Invited Men', 'Invited Women', 'Invited Total',
            'Responded', 'Confirmed Men', 'Confirmed Women', 'Personal Link', 'Registered',
        ]
        stats = RSVPService.event_statistics(db, event.id)
        summary = pd.DataFrame([
            {'Item': 'Event', 'Value': event.title},
            {'Item': 'Export date', 'Value': datetime.utcnow().strftime('%d/%m/%Y')},
            {'Item': 'Invited guests', 'Value': stats['total_guests']},
            {'Item': 'Responded', 'Value': stats['responded_guests']},
            {'Item': 'Pending', 'Value': stats['pending_guests']},
            {'Item': 'Confirmed men', 'Value': stats['confirmed_men']},
            {'Item': 'Confirmed women', 'Value': stats['confirmed_women']},
            {'Item': 'Confirmed total', 'Value': stats['confirmed_total']},
        ])

        return ExcelService._write_sheets({
            'Guest List': pd.DataFrame(rows, columns=columns),
            'Summary': summary,
        })

    @staticmethod
    def export_submissions(db: Session, event: Event) -> bytes:
        """One row per submission, one column per answer key"""
        submissions = RSVPService.list_submissions(db, event.id)
        answer_keys: List[str] = []
        for submission in submissions:
            for key in (submission.answers or {}):
                if key not in answer_keys:
                    answer_keys.append(key)

        rows = []
        for submission in submissions:
            row = {
                'Submitted At': submission.submitted_at.strftime('%d/%m/%Y %H:%M') if submission.submitted_at else '',
                'Full Name': submission.full_name or '',
                'Men': submission.men_count,
                'Women': submission.women_count,
                'Total': submission.men_count + submission.women_count,
                'Guest ID': submission.guest_id or '',
            }
            answers = submission.answers or {}
            for key in answer_keys:
                value = answers.get(key, '')
                row[key] = value if isinstance(value, (str, int, float, bool)) else str(value)
            rows.append(row)

        columns = ['Submitted At', 'Full Name', 'Men', 'Women', 'Total', 'Guest ID'] + answer_keys
        return ExcelService._write_sheets({'Submissions': pd.DataFrame(rows, columns=columns)})
