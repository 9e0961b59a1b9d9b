"""
eAPI call logger.
Keeps a bounded history of every runCmds call with its commands, outcome and timing.
"""

import csv
import io
import json
import logging
import re
from collections import Counter
from datetime import datetime
from typing import Dict, List, Any, Optional
from threading import Lock

logger = logging.getLogger(__name__)

REDACTED = '***REDACTED***'

EXPORT_FORMATS = ('json', 'csv')
CSV_FIELDS = ['id', 'timestamp', 'switch_ip', 'url', 'commands', 'format',
              'response_code', 'duration_ms', 'success', 'error', 'category']

# "username admin secret 0 foo" / "enable password bar" style commands
SECRET_COMMAND_PATTERN = re.compile(r'\b(secret|password|key)(\s+\d)?\s+\S+', re.IGNORECASE)


class APILogger:
    """Thread-safe history of eAPI calls."""

    def __init__(self, max_history: int = 100):
        self.call_history: List[Dict[str, Any]] = []
        self.max_history = max_history
        self._next_id = 1
        self._lock = Lock()

    def log_call(self,
                 switch_ip: str,
                 url: str,
                 commands: List[str],
                 output_format: str,
                 response_code: Optional[int],
                 duration_ms: float,
                 error: Optional[str] = None) -> Dict[str, Any]:
        """Record one runCmds request. response_code is None when no HTTP reply arrived."""
        sanitized = [self._sanitize_command(cmd) for cmd in commands]
        success = error is None

        with self._lock:
            entry = {
                'id': self._next_id,
                'timestamp': datetime.now().isoformat(),
                'switch_ip': switch_ip,
                'url': url,
                'commands': sanitized,
                'format': output_format,
                'response_code': response_code,
                'duration_ms': round(duration_ms, 2),
                'success': success,
                'error': error,
                'category': self._categorize(commands),
            }
            self._next_id += 1
            self.call_history.append(entry)
            if len(self.call_history) > self.max_history:
                self.call_history.pop(0)

        log_level = logging.INFO if success else logging.WARNING
        logger.log(log_level,
                   f"eAPI {switch_ip} [{len(commands)} cmds] -> "
                   f"{response_code if response_code is not None else 'no response'} ({duration_ms:.0f}ms)"
                   + (f": {error}" if error else ""))
        return entry

    @staticmethod
    def _sanitize_command(command: str) -> str:
        return SECRET_COMMAND_PATTERN.sub(lambda m: f"{m.group(1)} {REDACTED}", command)

    @staticmethod
    def _categorize(commands: List[str]) -> str:
        """Configuration batches enter config mode; everything else is a read."""
        lowered = [cmd.strip().lower() for cmd in commands]
        if 'configure' in lowered or 'configure terminal' in lowered:
            return 'configuration'
        if lowered and all(cmd.startswith('show') for cmd in lowered):
            return 'data_retrieval'
        return 'general'

    def _snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self.call_history)

    def get_recent_calls(self, limit: int = 20,
                         switch_ip: Optional[str] = None,
                         category: Optional[str] = None,
                         success_only: Optional[bool] = None) -> List[Dict[str, Any]]:
        """Newest `limit` calls matching every given filter, oldest first."""
        def matches(call: Dict[str, Any]) -> bool:
            return ((not switch_ip or call['switch_ip'] == switch_ip)
                    and (not category or call['category'] == category)
                    and (success_only is None or call['success'] == success_only))

        calls = [call for call in self._snapshot() if matches(call)]
        return calls[-limit:] if limit and limit > 0 else calls

    def get_call_statistics(self) -> Dict[str, Any]:
        """Totals per outcome, category and switch over the retained history."""
        calls = self._snapshot()
        total = len(calls)
        succeeded = sum(1 for call in calls if call['success'])

        stats = {
            'total_calls': total,
            'successful_calls': succeeded,
            'failed_calls': total - succeeded,
            'success_rate': round(succeeded / total * 100, 1) if total else 0,
            'average_duration': round(sum(c['duration_ms'] for c in calls) / total, 2) if total else 0,
            'categories': dict(Counter(call['category'] for call in calls)),
            'switches': dict(Counter(call['switch_ip'] for call in calls)),
            # No HTTP reply at all: refused, unreachable or timed out
            'unreachable_calls': sum(1 for call in calls if call['response_code'] is None),
        }
        if calls:
            stats['last_call'] = calls[-1]['timestamp']
        return stats

    def clear_history(self) -> int:
        """Drop every entry; ids keep counting up. Returns how many were dropped."""
        with self._lock:
            cleared_count = len(self.call_history)
            self.call_history = []

        logger.info(f"Cleared {cleared_count} eAPI call log entries")
        return cleared_count

    def export_logs(self, format: str = 'json') -> str:
        """Serialize the history as a json document or csv table."""
        format = format.lower()
        if format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {format}")

        calls = self._snapshot()
        if format == 'json':
            return json.dumps({
                'exported_at': datetime.now().isoformat(),
                'total_calls': len(calls),
                'statistics': self.get_call_statistics(),
                'calls': calls
            }, indent=2)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDS, extrasaction='ignore')
        writer.writeheader()
        for call in calls:
            writer.writerow({**call, 'commands': '; '.join(call['commands'])})
        return output.getvalue()


# Global API logger instance
api_logger = APILogger()
