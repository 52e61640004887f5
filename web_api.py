"""
Flask Web API for the extraordinary duty roster.
Serves month rosters, placement authorization, conflict reports and summaries.
"""

import json
import os
from typing import Dict, Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS

from assignment_limits import occurrence_counts
from conflict_scanner import ConflictReport, build_conflict_report
from data_loader import (
    load_group_roster, load_operation_set, load_ordinary_calendar,
    load_personnel, save_month_roster
)
from entities import (
    MONTHLY_ASSIGNMENT_CAP, STANDARD_OPERATIONS,
    MonthKey, MonthRoster, require_operation
)
from errors import DataUnavailable
from report_export import (
    build_conflict_report_pdf, build_group_summary_pdf, build_month_roster_workbook
)
from schedule_editor import ScheduleEditSession
from schedule_summary import operation_statistics, summarize_by_group, summarize_by_person
from slot_options import OPERATION_PRESENTATION, build_slot_options


def parse_month(args) -> MonthKey:
    """Read year/month (1-based) from request arguments"""
    year = args.get('year')
    month = args.get('month')
    if year is None or month is None:
        raise ValueError("year and month are required")
    return MonthKey(int(year), int(month))


def parse_pending(month: MonthKey, data: Optional[Dict]) -> Dict[str, MonthRoster]:
    """Pending (unsaved) rows sent by the client: {operation: {day: [slot, ...]}}"""
    if data is not None and not isinstance(data, dict):
        raise ValueError("pending must map operations to rosters")
    pending = {}
    for operation, days in (data or {}).items():
        require_operation(operation)
        pending[operation] = MonthRoster.from_dict(operation, month, days)
    return pending


def find_row_duplicates(roster: MonthRoster) -> Dict[int, list]:
    """Days on which the same person occupies more than one slot"""
    duplicates = {}
    for day in roster.days:
        names = roster.occupants(day)
        repeated = sorted({n for n in names if names.count(n) > 1})
        if repeated:
            duplicates[day] = repeated
    return duplicates


def create_app(db_path: str = "escala.db") -> Flask:
    """
    Create and configure Flask application.

    Args:
        db_path: Path to SQLite database

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['DB_PATH'] = db_path
    app.json.ensure_ascii = False

    CORS(app, supports_credentials=True)  # Enable CORS with credentials

    # ============================================================================
    # PERSONNEL
    # ============================================================================

    @app.route('/api/officers', methods=['GET'])
    def get_officers():
        """Active personnel, in directory order"""
        try:
            directory = load_personnel(db_path)
            return jsonify({
                'officers': directory.names(),
                'personnel': [
                    {'name': p.name, 'rank': p.rank, 'group': p.group, 'category': p.category}
                    for p in directory
                ]
            })
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Get officers error: {str(e)}")
            return jsonify({'error': 'Erro ao carregar militares'}), 500

    # ============================================================================
    # MONTH ROSTERS
    # ============================================================================

    @app.route('/api/schedule', methods=['GET'])
    def get_schedule():
        """One operation's roster for a month (empty when never saved)"""
        try:
            month = parse_month(request.args)
            operation = request.args.get('operation', 'pmf')
            require_operation(operation)
            roster = load_operation_set(db_path, month).roster(operation)
            return jsonify({
                'operation': operation,
                'year': month.year,
                'month': month.month,
                'schedule': roster.to_dict()
            })
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Get schedule error: {str(e)}")
            return jsonify({'error': 'Erro ao buscar escala'}), 500

    @app.route('/api/schedule', methods=['POST'])
    def save_schedule():
        """
        Save one operation's month roster wholesale.

        Refuses data that repeats a person within a day or that would put
        anyone above the monthly limit across all operations.
        """
        try:
            data = request.get_json() or {}
            month = parse_month(data)
            operation = data.get('operation', 'pmf')
            require_operation(operation)
            roster = MonthRoster.from_dict(operation, month, data.get('data'))

            duplicates = find_row_duplicates(roster)
            if duplicates:
                return jsonify({
                    'error': 'Militar escalado mais de uma vez no mesmo dia',
                    'duplicates': {str(d): names for d, names in duplicates.items()}
                }), 400

            operation_set = load_operation_set(db_path, month)
            operation_set.rosters[operation] = roster
            counts = occurrence_counts(month, operation_set.all_rosters())
            over_limit = {name: n for name, n in counts.items() if n > MONTHLY_ASSIGNMENT_CAP}
            if over_limit:
                return jsonify({
                    'error': f'Limite de {MONTHLY_ASSIGNMENT_CAP} serviços excedido',
                    'overLimit': dict(sorted(over_limit.items()))
                }), 409

            save_month_roster(db_path, roster, data.get('savedBy'))
            return jsonify({'success': True, 'schedule': roster.to_dict()})

        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Save schedule error: {str(e)}")
            return jsonify({'error': 'Erro ao salvar escala'}), 500

    @app.route('/api/combined-schedules', methods=['GET'])
    def get_combined_schedules():
        """All operations' rosters for a month"""
        try:
            month = parse_month(request.args)
            return jsonify({
                'year': month.year,
                'month': month.month,
                'schedules': load_operation_set(db_path, month).to_dict()
            })
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Get combined schedules error: {str(e)}")
            return jsonify({'error': 'Erro ao buscar agendas combinadas'}), 500

    @app.route('/api/schedule/export/excel', methods=['GET'])
    def export_schedule_excel():
        """All operations' rosters of a month as an Excel workbook"""
        try:
            month = parse_month(request.args)
            buffer = build_month_roster_workbook(load_operation_set(db_path, month))
            return send_file(
                buffer,
                mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
                as_attachment=True,
                download_name=f'Escala_Extra_{month}.xlsx'
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Excel export error: {str(e)}")
            return jsonify({'error': f'Erro na exportação Excel: {str(e)}'}), 500

    @app.route('/api/schedule/placement', methods=['POST'])
    def place_officer():
        """
        Authorize one slot change against the saved rosters plus the
        client's unsaved rows. Returns the updated row and pending rows.
        """
        try:
            data = request.get_json() or {}
            month = parse_month(data)
            operation = data.get('operation', 'pmf')
            require_operation(operation)
            day = int(data['day'])
            position = int(data['position'])
            officer = data.get('officer') or None
            if officer is not None and officer not in load_personnel(db_path):
                raise ValueError(f"Unknown officer: {officer!r}")

            session = ScheduleEditSession(
                load_operation_set(db_path, month),
                parse_pending(month, data.get('pending'))
            )
            result = session.place(operation, day, position, officer)

            body = result.to_dict()
            body['row'] = session.row(operation, day)
            body['pending'] = {op: r.to_dict() for op, r in session.pending.items()}
            if not result.authorized:
                app.logger.info(f"Placement rejected: {result.message}")
                return jsonify(body), 409
            return jsonify(body)

        except (KeyError, TypeError) as e:
            return jsonify({'error': f'Campo obrigatório ausente ou inválido: {str(e)}'}), 400
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Placement error: {str(e)}")
            return jsonify({'error': 'Erro ao escalar militar'}), 500

    @app.route('/api/schedule/availability', methods=['GET', 'POST'])
    def get_availability():
        """
        Candidates for one row, with limit-reached and already-in-use persons marked.

        Unsaved rows are taken into account: POST them as `pending` in the
        body, or pass them as a JSON-encoded `pending` query parameter.
        """
        try:
            if request.method == 'POST':
                params = request.get_json() or {}
                pending = params.get('pending')
            else:
                params = request.args
                pending = json.loads(params['pending']) if params.get('pending') else None
            month = parse_month(params)
            operation = params.get('operation', 'pmf')
            require_operation(operation)
            day = int(params['day'])
            mode = params.get('mode', OPERATION_PRESENTATION.get(operation, 'standard'))

            directory = load_personnel(db_path)
            session = ScheduleEditSession(
                load_operation_set(db_path, month),
                parse_pending(month, pending)
            )
            availability = session.availability(operation, day, directory.names())
            options = build_slot_options(
                directory.names(),
                directory,
                disabled=availability['in_use'],
                limit_reached=availability['limit_reached'],
                mode=mode
            )
            return jsonify({
                'day': day,
                'row': session.row(operation, day),
                'limitReached': sorted(availability['limit_reached']),
                'inUse': sorted(availability['in_use']),
                'options': [group.to_dict() for group in options]
            })

        except (KeyError, TypeError) as e:
            return jsonify({'error': f'Campo obrigatório ausente ou inválido: {str(e)}'}), 400
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Availability error: {str(e)}")
            return jsonify({'error': 'Erro ao verificar disponibilidade'}), 500

    # ============================================================================
    # CONFLICT REPORT
    # ============================================================================

    def conflict_report_for(month: MonthKey) -> ConflictReport:
        try:
            duty_calendar = load_ordinary_calendar(db_path, month)
            group_roster = load_group_roster(db_path)
            operation_set = load_operation_set(db_path, month)
        except DataUnavailable as e:
            app.logger.error(f"Conflict report unavailable: {str(e)}")
            return ConflictReport(month, error=str(e))
        return build_conflict_report(month, duty_calendar, group_roster, operation_set.all_rosters())

    @app.route('/api/conflicts', methods=['GET'])
    def get_conflicts():
        """Ordinary-duty vs extraordinary-roster conflicts for a month"""
        try:
            report = conflict_report_for(parse_month(request.args))
            if not report.is_available:
                return jsonify(report.to_dict()), 503
            return jsonify(report.to_dict())
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Conflict check error: {str(e)}")
            return jsonify({'error': 'Erro ao verificar inconsistências'}), 500

    @app.route('/api/conflicts/export/pdf', methods=['GET'])
    def export_conflicts_pdf():
        """Conflict report as PDF"""
        try:
            month = parse_month(request.args)
            report = conflict_report_for(month)
            if not report.is_available:
                return jsonify(report.to_dict()), 503
            buffer = build_conflict_report_pdf(report)
            return send_file(
                buffer,
                mimetype='application/pdf',
                as_attachment=True,
                download_name=f'Conflitos_{month}.pdf'
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            app.logger.error(f"Conflict PDF export error: {str(e)}")
            return jsonify({'error': f'Erro na exportação PDF: {str(e)}'}), 500

    # ============================================================================
    # SUMMARIES
    # ============================================================================

    @app.route('/api/summary', methods=['GET'])
    def get_summary():
        """Per-person, per-group and per-operation summaries of a month"""
        try:
            month = parse_month(request.args)
            operation = request.args.get('operation')
            operation_set = load_operation_set(db_path, month)
            directory = load_personnel(db_path)

            if operation:
                require_operation(operation)
                codes = [operation]
            else:
                codes = [op.code for op in STANDARD_OPERATIONS]

            rosters = [operation_set.roster(code) for code in codes]
            return jsonify({
                'month': str(month),
                'persons': [s.to_dict() for s in summarize_by_person(rosters)],
                'groups': {
                    code: {g: s.to_dict() for g, s in summarize_by_group(operation_set.roster(code), directory).items()}
                    for code in codes
                },
                'statistics': operation_statistics(operation_set)
            })
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Summary error: {str(e)}")
            return jsonify({'error': 'Erro ao gerar resumo'}), 500

    @app.route('/api/summary/groups/<group>/export/pdf', methods=['GET'])
    def export_group_summary_pdf(group):
        """One group's extraordinary assignments as PDF"""
        try:
            month = parse_month(request.args)
            operation = request.args.get('operation', 'pmf')
            require_operation(operation)
            operation_set = load_operation_set(db_path, month)
            summaries = summarize_by_group(operation_set.roster(operation), load_personnel(db_path))

            if group not in summaries:
                return jsonify({'error': f'Guarnição {group} não encontrada'}), 404

            buffer = build_group_summary_pdf(summaries[group], operation, month)
            return send_file(
                buffer,
                mimetype='application/pdf',
                as_attachment=True,
                download_name=f'Extras_{operation}_Guarnicao_{group}_{month}.pdf'
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except DataUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except Exception as e:
            app.logger.error(f"Group PDF export error: {str(e)}")
            return jsonify({'error': f'Erro na exportação PDF: {str(e)}'}), 500

    return app
