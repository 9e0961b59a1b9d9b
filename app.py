"""
Arista Switch Manager - Flask API for switch inventory, VLAN, VXLAN and tunnel management
"""
import logging
from flask import Flask, request, jsonify, make_response
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix
from typing import Any, Dict
from config.settings import Config
from config.switch_inventory import UPDATABLE_FIELDS, inventory
from core.client_factory import client_factory
from core.tunnel_orchestrator import TunnelRequest, tunnel_orchestrator
from core.projections import collect_vlans, collect_vxlans, vlan_view, vxlan_view
from core.validation import NetworkValidator, ValidationError
from core.exceptions import SwitchConnectionError, SwitchNotFoundError
from core.api_logger import api_logger

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def error_response(error: Exception, action: str):
    """Translate an exception raised while serving a request into a JSON error."""
    if isinstance(error, SwitchNotFoundError):
        return jsonify({'error': str(error)}), 404
    if isinstance(error, ValidationError):
        return jsonify({'error': str(error), 'errors': error.errors}), 400
    if isinstance(error, SwitchConnectionError):
        logger.error(f"Error {action}: {error}")
        return jsonify(error.to_dict()), error.http_status
    logger.error(f"Unexpected error {action}: {error}", exc_info=True)
    return jsonify({'error': str(error)}), 500


def request_data() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def find_switch_or_404(switch_id: str):
    switch_info = inventory.get_switch(switch_id)
    if not switch_info:
        raise SwitchNotFoundError(switch_id)
    return switch_info


SWITCH_FIELDS = ('hostname', 'mgmtIP', 'username', 'password')


def non_string_fields(data: Dict[str, Any], fields) -> list:
    return [field for field in fields if data.get(field) is not None and not isinstance(data[field], str)]


# Initialize Flask application
app = Flask(__name__)
# Ensure correct scheme/host when running behind reverse proxies
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)
CORS(app, resources={r"/api/*": {"origins": Config.CORS_ORIGINS}})

# Validate configuration on startup
config_errors = Config.validate()
if config_errors:
    logger.error("Configuration errors found:")
    for error in config_errors:
        logger.error(f"  - {error}")
    raise SystemExit("Please fix configuration errors before starting the application")


@app.route('/healthz')
def healthz():
    """Simple health check endpoint for reverse proxy/monitors."""
    return jsonify({"status": "ok"}), 200


@app.route('/api/health')
def api_health():
    return jsonify({
        'status': 'running',
        'message': 'Arista Switch Manager API is operational',
        'version': Config.APP_VERSION
    }), 200


# Switch management endpoints
@app.route('/api/switches', methods=['GET'])
def get_switches():
    """Get all switches in inventory with passwords masked."""
    try:
        return jsonify([switch.to_dict() for switch in inventory.get_all_switches()])
    except Exception as e:
        return error_response(e, "listing switches")


@app.route('/api/switches/<switch_id>', methods=['GET'])
def get_switch(switch_id: str):
    try:
        return jsonify(find_switch_or_404(switch_id).to_dict())
    except Exception as e:
        return error_response(e, f"loading switch {switch_id}")


@app.route('/api/switches', methods=['POST'])
def add_switch():
    """Add a switch after confirming eAPI answers with the given credentials."""
    data = request_data()
    wrong_type = non_string_fields(data, SWITCH_FIELDS)
    if wrong_type:
        return jsonify({'error': f"Fields must be strings: {', '.join(wrong_type)}"}), 400

    hostname = (data.get('hostname') or '').strip()
    mgmt_ip = (data.get('mgmtIP') or '').strip()
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    if not all([hostname, mgmt_ip, username, password]):
        return jsonify({
            'error': 'Missing required fields',
            'required': list(SWITCH_FIELDS)
        }), 400

    is_valid, error = NetworkValidator.validate_ip_address(mgmt_ip)
    if not is_valid:
        return jsonify({'error': error}), 400

    try:
        client = client_factory.client_for_credentials(mgmt_ip, username, password)
        connection_test = client.test_connection()

        if not connection_test['connected']:
            logger.warning(f"Refusing to add {hostname} ({mgmt_ip}): {connection_test['error']}")
            return jsonify({
                'error': 'Failed to connect to switch',
                'details': connection_test['error']
            }), 400

        switch_info = inventory.add_switch(
            hostname=hostname,
            mgmt_ip=mgmt_ip,
            username=username,
            password=password,
            model=connection_test.get('model') or data.get('model'),
            eos_version=connection_test.get('eosVersion'),
            uptime=connection_test.get('uptime'),
            status='connected'
        )
        return jsonify(switch_info.to_dict()), 201
    except Exception as e:
        return error_response(e, f"adding switch {mgmt_ip}")


@app.route('/api/switches/<switch_id>', methods=['PUT'])
def update_switch(switch_id: str):
    """Shallow-merge hostname, mgmtIP, username, password and status."""
    data = request_data()
    wrong_type = non_string_fields(data, UPDATABLE_FIELDS)
    if wrong_type:
        return jsonify({'error': f"Fields must be strings: {', '.join(wrong_type)}"}), 400

    # Passwords are taken verbatim, as on add
    changes = {
        field: data[field] if field == 'password' else data[field].strip()
        for field in UPDATABLE_FIELDS if data.get(field)
    }

    if changes.get('mgmtIP'):
        is_valid, error = NetworkValidator.validate_ip_address(changes['mgmtIP'])
        if not is_valid:
            return jsonify({'error': error}), 400

    try:
        switch_info = inventory.update_switch(switch_id, **changes)
        if not switch_info:
            return jsonify({'error': 'Switch not found'}), 404
        return jsonify(switch_info.to_dict())
    except Exception as e:
        return error_response(e, f"updating switch {switch_id}")


@app.route('/api/switches/<switch_id>', methods=['DELETE'])
def remove_switch(switch_id: str):
    """Remove a switch from inventory."""
    try:
        if not inventory.remove_switch(switch_id):
            return jsonify({'error': 'Switch not found'}), 404
        return jsonify({'success': True, 'id': switch_id})
    except Exception as e:
        return error_response(e, f"removing switch {switch_id}")


@app.route('/api/switches/<switch_id>/info', methods=['GET'])
def get_switch_info(switch_id: str):
    """Live version and interface status from the switch."""
    try:
        return jsonify(client_factory.client_for_id(switch_id).get_switch_info())
    except Exception as e:
        return error_response(e, f"fetching info for {switch_id}")


# VLAN endpoints
@app.route('/api/vlans', methods=['GET'])
def get_all_vlans():
    """VLANs from every switch, merged by VLAN id."""
    try:
        return jsonify(collect_vlans(inventory.get_all_switches(), client_factory))
    except Exception as e:
        return error_response(e, "collecting VLANs")


@app.route('/api/vlans/<switch_id>', methods=['GET'])
def get_switch_vlans(switch_id: str):
    try:
        client = client_factory.client_for_id(switch_id)
        return jsonify([vlan_view(vlan) for vlan in client.get_vlans()])
    except Exception as e:
        return error_response(e, f"listing VLANs on {switch_id}")


@app.route('/api/vlans/<switch_id>', methods=['POST'])
def create_vlan(switch_id: str):
    """Create a VLAN on a specific switch."""
    data = request_data()
    vlan_id = data.get('vlanId')
    name = data.get('name')

    if vlan_id in (None, '') or not name:
        return jsonify({'error': 'VLAN ID and name are required'}), 400

    for is_valid, error in (NetworkValidator.validate_vlan_id(vlan_id),
                            NetworkValidator.validate_vlan_name(name)):
        if not is_valid:
            return jsonify({'error': error}), 400

    vlan_id = int(vlan_id)
    try:
        switch_info = find_switch_or_404(switch_id)
        client_factory.client_for_switch(switch_info).create_vlan(vlan_id, name)
        logger.info(f"VLAN creation request: {switch_id} - VLAN {vlan_id} ({name})")
        return jsonify({
            'id': f"vlan-{vlan_id}-{switch_info.id}",
            'vlanId': vlan_id,
            'name': name,
            'description': data.get('description') or '',
            'status': 'active',
            'switches': [switch_info.summary()]
        }), 201
    except Exception as e:
        return error_response(e, f"creating VLAN {vlan_id} on {switch_id}")


@app.route('/api/vlans/<switch_id>/batch', methods=['POST'])
def create_vlans_batch(switch_id: str):
    """Create several VLANs; one failing VLAN does not stop the rest."""
    vlans = request_data().get('vlans')

    if not isinstance(vlans, list) or not vlans:
        return jsonify({'error': 'No VLANs provided'}), 400

    try:
        client = client_factory.client_for_id(switch_id)
    except Exception as e:
        return error_response(e, f"resolving switch {switch_id}")

    results = []
    for vlan in vlans:
        vlan = vlan if isinstance(vlan, dict) else {}
        vlan_id = vlan.get('vlanId')
        name = vlan.get('name')

        if vlan_id in (None, '') or not name:
            results.append({'success': False, 'vlanId': vlan_id, 'error': 'VLAN ID and name are required'})
            continue

        errors = [error for is_valid, error in (NetworkValidator.validate_vlan_id(vlan_id),
                                                NetworkValidator.validate_vlan_name(name))
                  if not is_valid]
        if errors:
            results.append({'success': False, 'vlanId': vlan_id, 'error': '; '.join(errors)})
            continue

        try:
            client.create_vlan(int(vlan_id), name)
            results.append({'success': True, 'vlanId': int(vlan_id), 'name': name})
        except SwitchConnectionError as e:
            logger.warning(f"Batch VLAN {vlan_id} on {switch_id} failed: {e}")
            results.append({'success': False, 'vlanId': vlan_id, 'error': str(e)})

    return jsonify({'results': results})


@app.route('/api/vlans/<switch_id>/<vlan_id>', methods=['DELETE'])
def delete_vlan(switch_id: str, vlan_id: str):
    """Delete a VLAN from a specific switch."""
    errors = NetworkValidator.validate_vlan_delete(vlan_id)
    if errors:
        return jsonify({'error': errors[0]}), 400

    try:
        client_factory.client_for_id(switch_id).delete_vlan(int(vlan_id))
        logger.info(f"VLAN deletion request: {switch_id} - VLAN {vlan_id}")
        return jsonify({'success': True, 'vlanId': int(vlan_id)})
    except Exception as e:
        return error_response(e, f"deleting VLAN {vlan_id} on {switch_id}")


# VXLAN endpoints
@app.route('/api/vxlans', methods=['GET'])
def get_all_vxlans():
    """VNIs from every switch, merged by VNI with flood lists unioned."""
    try:
        return jsonify(collect_vxlans(inventory.get_all_switches(), client_factory))
    except Exception as e:
        return error_response(e, "collecting VXLANs")


@app.route('/api/vxlans/<switch_id>', methods=['GET'])
def get_switch_vxlans(switch_id: str):
    try:
        client = client_factory.client_for_id(switch_id)
        return jsonify([vxlan_view(vxlan) for vxlan in client.get_vxlans()])
    except Exception as e:
        return error_response(e, f"listing VXLANs on {switch_id}")


def _validate_vxlan_body(data: Dict[str, Any]):
    """Return an error response tuple, or None when the body is usable."""
    if NetworkValidator.missing_fields(data, ('vni', 'vlan', 'sourceInterface', 'vtepIp')):
        return jsonify({'error': 'VNI, VLAN, source interface, and VTEP IP are required'}), 400
    errors = NetworkValidator.validate_vxlan_config(data)
    if errors:
        return jsonify({'error': '; '.join(errors), 'errors': errors}), 400
    return None


@app.route('/api/vxlans/<switch_id>', methods=['POST'])
def create_vxlan(switch_id: str):
    """Bind a VNI to a VLAN and add a flood VTEP on one switch."""
    data = request_data()
    invalid = _validate_vxlan_body(data)
    if invalid:
        return invalid

    vni = int(data['vni'])
    vlan = int(data['vlan'])
    vtep_ip = data['vtepIp'].strip()
    try:
        switch_info = find_switch_or_404(switch_id)
        client_factory.client_for_switch(switch_info).configure_vxlan(
            vni=vni, vlan=vlan, source_interface=data['sourceInterface'], vtep_ip=vtep_ip
        )
        return jsonify({
            'id': f"vxlan-{vni}-{switch_info.id}",
            'vni': vni,
            'name': data.get('name') or f"VXLAN-{vni}",
            'vlan': vlan,
            'vtepIps': [vtep_ip],
            'status': 'active',
            'tunnelCount': 1,
            'switches': [switch_info.summary()]
        }), 201
    except Exception as e:
        return error_response(e, f"configuring VNI {vni} on {switch_id}")


@app.route('/api/vxlans/<switch_id>/interfaces', methods=['GET'])
def get_vxlan_source_interfaces(switch_id: str):
    """Loopback interfaces usable as the VXLAN source."""
    try:
        return jsonify(client_factory.client_for_id(switch_id).get_loopback_interfaces())
    except Exception as e:
        return error_response(e, f"listing interfaces on {switch_id}")


@app.route('/api/vxlans/<switch_id>/preview', methods=['POST'])
def preview_vxlan(switch_id: str):
    data = request_data()
    invalid = _validate_vxlan_body(data)
    if invalid:
        return invalid

    try:
        find_switch_or_404(switch_id)
        config_preview = '\n'.join([
            '!',
            '! VXLAN Configuration Preview',
            '!',
            'interface vxlan 1',
            f"  vxlan vni {data['vni']} vlan {data['vlan']}",
            f"  vxlan source-interface {data['sourceInterface']}",
            f"  vxlan vlan {data['vlan']} vni {data['vni']}",
            f"  vxlan flood vtep {data['vtepIp']}",
            '!'
        ])
        return jsonify({'configPreview': config_preview})
    except Exception as e:
        return error_response(e, f"previewing VXLAN on {switch_id}")


# Tunnel endpoints
@app.route('/api/tunnels/switches', methods=['GET'])
def get_tunnel_switches():
    """Switches eligible as tunnel endpoints."""
    try:
        return jsonify([
            {'id': s.id, 'hostname': s.hostname, 'model': s.model}
            for s in inventory.get_connected_switches()
        ])
    except Exception as e:
        return error_response(e, "listing tunnel switches")


def _tunnel_validation_error(error: ValidationError):
    return jsonify({
        'error': str(error),
        'errors': error.errors,
        'required': list(NetworkValidator.TUNNEL_FIELDS)
    }), 400


@app.route('/api/tunnels/preview', methods=['POST'])
def preview_tunnel():
    try:
        tunnel_request = TunnelRequest.from_dict(request_data())
    except ValidationError as e:
        return _tunnel_validation_error(e)
    return jsonify(tunnel_orchestrator.preview(tunnel_request))


@app.route('/api/tunnels/create', methods=['POST'])
def create_tunnel():
    """Configure both tunnel ends; the phase log is returned even on failure."""
    try:
        tunnel_request = TunnelRequest.from_dict(request_data())
    except ValidationError as e:
        return _tunnel_validation_error(e)

    try:
        return jsonify(tunnel_orchestrator.create(tunnel_request))
    except Exception as e:
        return error_response(e, "creating tunnel")


@app.route('/api/tunnels/suggested-vnis', methods=['POST'])
def suggest_vnis():
    try:
        return jsonify({'suggestedVnis': tunnel_orchestrator.suggest_vnis()})
    except Exception as e:
        return error_response(e, "suggesting VNIs")


@app.route('/api/tunnels/<switch_id>', methods=['GET'])
def get_switch_tunnels(switch_id: str):
    try:
        return jsonify(tunnel_orchestrator.list_tunnels(switch_id))
    except Exception as e:
        return error_response(e, f"listing tunnels on {switch_id}")


# eAPI call log endpoints
@app.route('/api/logs/calls')
def get_api_call_logs():
    """Get recent eAPI calls with optional filtering."""
    limit = request.args.get('limit', 50, type=int)
    switch_ip = request.args.get('switch_ip')
    category = request.args.get('category')
    success_only = request.args.get('success_only')

    if success_only is not None:
        success_only = success_only.lower() == 'true'

    calls = api_logger.get_recent_calls(
        limit=limit,
        switch_ip=switch_ip,
        category=category,
        success_only=success_only
    )
    return jsonify({
        'calls': calls,
        'statistics': api_logger.get_call_statistics(),
        'total_returned': len(calls)
    })


@app.route('/api/logs/clear', methods=['POST'])
def clear_api_logs():
    cleared_count = api_logger.clear_history()
    return jsonify({
        'message': 'eAPI call logs cleared successfully',
        'cleared_entries': cleared_count
    })


@app.route('/api/logs/export')
def export_api_logs():
    """Export eAPI logs as a json or csv attachment."""
    format_type = request.args.get('format', 'json').lower()
    if format_type not in ['json', 'csv']:
        return jsonify({'error': 'Supported formats: json, csv'}), 400

    response = make_response(api_logger.export_logs(format_type))
    response.headers['Content-Type'] = 'text/csv' if format_type == 'csv' else 'application/json'
    response.headers['Content-Disposition'] = f'attachment; filename=eapi_logs.{format_type}'
    return response


# Error handlers
@app.errorhandler(404)
def not_found(error):
    """Handle 404 errors."""
    return jsonify({'error': 'Endpoint not found'}), 404


@app.errorhandler(405)
def method_not_allowed(error):
    return jsonify({'error': 'Method not allowed'}), 405


@app.errorhandler(Exception)
def handle_exception(error):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {error}", exc_info=True)
    return jsonify({'error': 'Internal server error'}), 500


if __name__ == '__main__':
    logger.info("Starting Arista Switch Manager API")
    logger.info(f"Configuration: env {Config.APP_ENV}, SSL verify: {Config.SSL_VERIFY}, "
                f"eAPI timeout: {Config.EAPI_TIMEOUT}s")
    logger.info(f"Switch inventory: {Config.SWITCHES_CONFIG}")

    app.run(
        host=Config.HOST,
        port=Config.PORT,
        debug=Config.FLASK_DEBUG,
        use_reloader=False
    )
