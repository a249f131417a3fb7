"""CLI script to seed the backend DB with an admin API key and sample applicants.
Usage: python scripts/seed.py [--skip-applicants]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `pmb_service` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from datetime import datetime, timezone
from sqlmodel import Session
from pmb_service.config import Settings
from pmb_service.database import build_engine, create_db_and_tables
from pmb_service import services

SAMPLE_APPLICANTS = [
    {
        'registration_number': 'REG-2025-001',
        'full_name': 'Ahmad Fauzi',
        'admission_path': 'Reguler',
        'major_choice_1': 'Teknik Informatika',
        'major_choice_2': 'Sistem Informasi',
        'email': 'ahmad.fauzi@example.com',
        'phone': '081234567890',
        'graduation_year': 2025,
        'gender': 'Laki-laki',
        'school_origin': 'SMAN 1 Jakarta',
        'school_major': 'IPA',
        'ranking': 5,
        'parent_name': 'Budi Santoso',
        'parent_phone': '081234567891',
        'religion': 'Islam',
        'province': 'DKI Jakarta',
        'city': 'Jakarta Selatan',
        'village': 'Kebayoran Baru',
        'district': 'Kebayoran Baru',
        'postal_code': '12160',
        'home_address': 'Jl. Senopati No. 123',
    },
    {
        'registration_number': 'REG-2025-002',
        'full_name': 'Siti Rahma',
        'admission_path': 'Beasiswa',
        'major_choice_1': 'Sistem Informasi',
        'major_choice_2': 'Teknik Informatika',
        'major_choice_3': 'Manajemen Informatika',
        'email': 'siti.rahma@example.com',
        'phone': '081234567892',
        'graduation_year': 2025,
        'gender': 'Perempuan',
        'school_origin': 'SMAN 3 Bandung',
        'school_major': 'IPA',
        'ranking': 1,
        'parent_name': 'Iwan Setiawan',
        'parent_phone': '081234567893',
        'religion': 'Islam',
        'province': 'Jawa Barat',
        'city': 'Bandung',
        'village': 'Dago',
        'district': 'Coblong',
        'postal_code': '40135',
        'home_address': 'Jl. Dago No. 45',
        'agent': 'Agent Jakarta',
        'loa_published': True,
        'loa_date': datetime(2025, 1, 15, tzinfo=timezone.utc),
    },
]


def main(skip_applicants: bool = False):
    """Create tables, issue a default admin key and insert sample applicants.

    Applicants whose registration number already exists are skipped so the
    script can be re-run against the same database.
    """
    settings = Settings()
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)
    print('Using database:', settings.DATABASE_URL)
    with Session(engine) as session:
        key = services.ApiKeyService(session, prefix=settings.API_KEY_PREFIX).create('Default Admin Key')
        print('Created API key:', key.api_key)
        if skip_applicants:
            return
        applicants = services.ApplicantService(session)
        for data in SAMPLE_APPLICANTS:
            if applicants.registration_number_exists(data['registration_number']):
                print(f"Skipped existing applicant: {data['full_name']}")
                continue
            applicants.create(data)
            print(f"Created applicant: {data['full_name']}")
    print('Seed completed.')

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--skip-applicants', action='store_true', help='Only issue the admin API key')
    args = parser.parse_args()
    main(skip_applicants=args.skip_applicants)
