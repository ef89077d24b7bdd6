# status: complete

from flask import Flask, jsonify, request

from agents.models.gui_actions import ActionDecodeError, UnsupportedActionError, UnsupportedApplicationError, decode_action_request
from agents.tools.gui_ops.action_executor import ActionExecutor
from utils.error_formatter import ErrorFormatter
from utils.logger import get_logger

logger = get_logger(__name__)


def register_computer_use_routes(app: Flask, executor: ActionExecutor):
    """Register the raw action endpoint"""

    @app.route('/computer-use', methods=['POST'])
    def computer_use():
        """Execute a single {"action": ..., ...} request directly"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Invalid request body: expected a JSON object'}), 400

        try:
            action = decode_action_request(data)
        except (ActionDecodeError, UnsupportedActionError, UnsupportedApplicationError) as e:
            logger.warning(f"[COMPUTER-USE] Rejected request: {e}")
            return jsonify({'success': False, 'error': str(e)}), 400

        try:
            result = executor.execute(action)
        except Exception as e:
            logger.error(f"[COMPUTER-USE] {data.get('action')} failed: {e}")
            return jsonify({
                'success': False,
                'error': ErrorFormatter.format_error_message(e, f"Action '{data.get('action')}'"),
            }), 500

        payload = {'success': True}
        if result is not None:
            payload['data'] = result.to_dict()
        return jsonify(payload)
