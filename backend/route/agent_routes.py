# status: complete

from flask import Flask, jsonify, request

from agents.execution.agent_loop import AgentAbortedError, EmptyMessageError, GUIAgent
from utils.cancellation_manager import CancellationManager
from utils.config import Config
from utils.error_formatter import ErrorFormatter
from utils.logger import get_logger

logger = get_logger(__name__)


def register_agent_routes(app: Flask, agent: GUIAgent, cancellations: CancellationManager):
    """Register the GUI agent routes"""

    @app.route('/agent', methods=['POST'])
    def run_agent():
        """Run one natural-language request through the agent loop"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid request body: expected a JSON object'}), 400

        message = data.get('message')
        if not isinstance(message, str) or not message.strip():
            return jsonify({'error': 'message is required'}), 400

        request_id = data.get('request_id')
        if request_id is not None and not isinstance(request_id, str):
            return jsonify({'error': 'request_id must be a string'}), 400

        token = cancellations.create(request_id=request_id, timeout=Config.get_request_timeout())
        logger.info(f"[AGENT-REQUEST] {token.request_id}: {ErrorFormatter.create_error_preview(message, 120)}")
        try:
            response = agent.process_message(message, cancellation=token)
            return jsonify({'response': response, 'request_id': token.request_id})
        except EmptyMessageError as e:
            return jsonify({'error': str(e)}), 400
        except AgentAbortedError as e:
            logger.warning(f"[AGENT-ABORTED] {token.request_id}: {e}")
            return jsonify({
                'response': e.partial_response,
                'error': str(e),
                'request_id': token.request_id,
            })
        except Exception as e:
            logger.error(f"[AGENT-ERROR] {token.request_id}: {e}", exc_info=True)
            return jsonify({
                'response': '',
                'error': ErrorFormatter.format_error_message(e, 'Agent request'),
                'request_id': token.request_id,
            })
        finally:
            cancellations.release(token.request_id, token)

    @app.route('/agent/cancel', methods=['POST'])
    def cancel_agent():
        """Cancel an in-flight agent request by id"""
        data = request.get_json(silent=True) or {}
        request_id = data.get('request_id') if isinstance(data, dict) else None
        if not isinstance(request_id, str) or not request_id:
            return jsonify({'success': False, 'error': 'request_id is required'}), 400

        cancelled = cancellations.cancel(request_id)
        return jsonify({'success': True, 'cancelled': cancelled})

    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({'status': 'healthy', 'agent': 'gui-agent'})

    @app.route('/capabilities', methods=['GET'])
    def capabilities():
        return jsonify({
            'tools': agent.get_available_tools(),
            'capabilities': agent.get_capabilities(),
        })
