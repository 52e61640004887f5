"""
Tests for the roster web API.

Verifies that:
1. Saving a roster that puts anyone above the monthly limit is refused
2. Single-slot placements are authorized against saved and pending rows
3. Conflict reports distinguish "no conflicts" from "unavailable"
4. PDF and Excel exports are served as attachments
"""

import json
import os
import tempfile
import unittest

from db_init import initialize_database
from web_api import create_app

SILVA = "SD PM A. SILVA"
OLIMAR = "1º SGT PM OLIMAR"


class TestRosterApi(unittest.TestCase):
    """Test roster endpoints against a sample database"""

    def setUp(self):
        fd, self.db_path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        initialize_database(self.db_path, with_sample_data=True)
        self.app = create_app(self.db_path)
        self.app.config['TESTING'] = True
        self.client = self.app.test_client()

    def tearDown(self):
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def save(self, operation, data, year=2025, month=4):
        return self.client.post('/api/schedule', json={
            'operation': operation, 'year': year, 'month': month, 'data': data
        })

    def test_get_officers(self):
        response = self.client.get('/api/officers')

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(len(body['officers']), 33)
        self.assertIn(OLIMAR, body['officers'])

    def test_get_unsaved_schedule_is_empty(self):
        response = self.client.get('/api/schedule?operation=pmf&year=2025&month=4')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['schedule'], {})

    def test_missing_month_is_bad_request(self):
        response = self.client.get('/api/schedule?operation=pmf')
        self.assertEqual(response.status_code, 400)

    def test_unknown_operation_is_bad_request(self):
        response = self.client.get('/api/schedule?operation=ronda&year=2025&month=4')
        self.assertEqual(response.status_code, 400)

    def test_save_and_combine(self):
        response = self.save('pmf', {'7': [OLIMAR, None, None]})
        self.assertEqual(response.status_code, 200)

        response = self.save('escolaSegura', {'8': [SILVA, None]})
        self.assertEqual(response.status_code, 200)

        response = self.client.get('/api/combined-schedules?year=2025&month=4')
        schedules = response.get_json()['schedules']
        self.assertEqual(schedules['pmf'], {'7': [OLIMAR, None, None]})
        self.assertEqual(schedules['escolaSegura'], {'8': [SILVA, None]})

    def test_save_above_limit_is_refused(self):
        self.save('escolaSegura', {str(d): [SILVA, None] for d in [1, 2, 3, 4]})

        response = self.save('pmf', {str(d): [SILVA, None, None] for d in range(10, 19)})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['overLimit'], {SILVA: 13})

    def test_save_exactly_at_limit_is_accepted(self):
        response = self.save('pmf', {str(d): [SILVA, None, None] for d in range(1, 13)})
        self.assertEqual(response.status_code, 200)

    def test_save_with_duplicate_in_day_is_refused(self):
        response = self.save('pmf', {'3': [SILVA, SILVA, None]})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['duplicates'], {'3': [SILVA]})

    def test_placement_counts_saved_and_pending_rows(self):
        self.save('pmf', {str(d): [SILVA, None, None] for d in range(1, 12)})

        response = self.client.post('/api/schedule/placement', json={
            'operation': 'pmf', 'year': 2025, 'month': 4,
            'day': 20, 'position': 0, 'officer': SILVA
        })
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['authorized'])
        self.assertEqual(body['count'], 11)
        self.assertEqual(body['pending'], {'pmf': {'20': [SILVA, None, None]}})

        response = self.client.post('/api/schedule/placement', json={
            'operation': 'escolaSegura', 'year': 2025, 'month': 4,
            'day': 21, 'position': 0, 'officer': SILVA,
            'pending': body['pending']
        })
        self.assertEqual(response.status_code, 409)
        body = response.get_json()
        self.assertFalse(body['authorized'])
        self.assertEqual(body['reason'], 'LIMIT_EXCEEDED')
        self.assertEqual(body['count'], 12)
        self.assertEqual(body['row'], [None, None])

    def test_placement_removal_is_always_authorized(self):
        self.save('pmf', {str(d): [SILVA, None, None] for d in range(1, 13)})

        response = self.client.post('/api/schedule/placement', json={
            'operation': 'pmf', 'year': 2025, 'month': 4,
            'day': 5, 'position': 0, 'officer': None
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['row'], [None, None, None])

    def test_placement_without_day_is_bad_request(self):
        response = self.client.post('/api/schedule/placement', json={
            'operation': 'pmf', 'year': 2025, 'month': 4, 'position': 0, 'officer': SILVA
        })
        self.assertEqual(response.status_code, 400)

    def test_availability(self):
        self.save('pmf', {str(d): [SILVA, None, None] for d in range(1, 13)})
        self.save('escolaSegura', {'14': ['CB CARLA', None]})

        response = self.client.get('/api/schedule/availability?operation=pmf&year=2025&month=4&day=14')

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['limitReached'], [SILVA])
        self.assertEqual(body['inUse'], ['CB CARLA'])
        alfa = next(g for g in body['options'] if g['group'] == 'ALFA')
        silva = next(o for o in alfa['options'] if o['name'] == SILVA)
        self.assertTrue(silva['disabled'])
        self.assertEqual(silva['badge'], '⛔ BLOQUEADO (12)')

    def test_save_rejects_rows_that_are_not_lists_of_names(self):
        for row in ['AB', None, [SILVA, 5], {'0': SILVA}]:
            response = self.save('pmf', {'7': row})
            self.assertEqual(response.status_code, 400, row)

        response = self.save('pmf', [[SILVA]])
        self.assertEqual(response.status_code, 400)

        response = self.client.get('/api/schedule?operation=pmf&year=2025&month=4')
        self.assertEqual(response.get_json()['schedule'], {})

    def test_placement_rejects_malformed_pending_rows(self):
        for pending in [{'pmf': {'20': 'AB'}}, {'pmf': {'20': None}}, ['pmf']]:
            response = self.client.post('/api/schedule/placement', json={
                'operation': 'pmf', 'year': 2025, 'month': 4,
                'day': 21, 'position': 0, 'officer': SILVA,
                'pending': pending
            })
            self.assertEqual(response.status_code, 400, pending)

    def test_placement_rejects_unknown_officer(self):
        response = self.client.post('/api/schedule/placement', json={
            'operation': 'pmf', 'year': 2025, 'month': 4,
            'day': 7, 'position': 0, 'officer': 'SD PM FANTASMA'
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('SD PM FANTASMA', response.get_json()['error'])

    def test_availability_counts_unsaved_rows(self):
        self.save('pmf', {str(d): [SILVA, None, None] for d in range(1, 12)})
        pending = {
            'pmf': {'20': [SILVA, None, None]},
            'escolaSegura': {'14': ['CB CARLA', None]},
        }

        response = self.client.post('/api/schedule/availability', json={
            'operation': 'pmf', 'year': 2025, 'month': 4, 'day': 14, 'pending': pending
        })
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['limitReached'], [SILVA])
        self.assertEqual(body['inUse'], ['CB CARLA'])

        response = self.client.get(
            '/api/schedule/availability',
            query_string={
                'operation': 'pmf', 'year': 2025, 'month': 4, 'day': 14,
                'pending': json.dumps(pending)
            }
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['limitReached'], [SILVA])

        response = self.client.get('/api/schedule/availability?operation=pmf&year=2025&month=4&day=14')
        self.assertEqual(response.get_json()['limitReached'], [])

    def test_conflicts(self):
        self.save('pmf', {'7': [OLIMAR, None, None]})

        response = self.client.get('/api/conflicts?year=2025&month=4')

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['available'])
        self.assertEqual(body['count'], 1)
        self.assertEqual(body['conflicts'][0]['person'], OLIMAR)
        self.assertEqual(body['conflicts'][0]['ordinaryGroup'], 'BRAVO')

    def test_conflicts_without_calendar_are_unavailable(self):
        response = self.client.get('/api/conflicts?year=2025&month=5')

        self.assertEqual(response.status_code, 503)
        body = response.get_json()
        self.assertFalse(body['available'])
        self.assertIn('2025-05', body['error'])

    def test_conflict_pdf_export(self):
        self.save('pmf', {'7': [OLIMAR, None, None]})

        response = self.client.get('/api/conflicts/export/pdf?year=2025&month=4')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'application/pdf')
        self.assertTrue(response.data.startswith(b'%PDF'))

    def test_conflict_pdf_export_unavailable(self):
        response = self.client.get('/api/conflicts/export/pdf?year=2025&month=5')
        self.assertEqual(response.status_code, 503)

    def test_schedule_excel_export(self):
        self.save('pmf', {'7': [OLIMAR, None, None]})

        response = self.client.get('/api/schedule/export/excel?year=2025&month=4')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.mimetype,
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        self.assertTrue(response.data.startswith(b'PK'))

    def test_summary(self):
        self.save('pmf', {'7': [OLIMAR, SILVA, None], '8': [SILVA, None, None]})

        response = self.client.get('/api/summary?year=2025&month=4')

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['persons'][0], {'name': SILVA, 'days': [7, 8], 'total': 2})
        self.assertEqual(body['groups']['pmf']['BRAVO']['total'], 1)
        self.assertEqual(body['statistics']['filled'], 3)

    def test_group_summary_pdf_export(self):
        self.save('pmf', {'7': [OLIMAR, None, None]})

        response = self.client.get('/api/summary/groups/BRAVO/export/pdf?operation=pmf&year=2025&month=4')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'application/pdf')

        response = self.client.get('/api/summary/groups/DELTA/export/pdf?operation=pmf&year=2025&month=4')
        self.assertEqual(response.status_code, 404)


if __name__ == '__main__':
    unittest.main()
