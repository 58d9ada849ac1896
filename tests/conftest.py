import os
import tempfile

# окружение должно быть готово до первого импорта hangwa.config
_tmp_dir = tempfile.mkdtemp(prefix="hangwa-tests-")
os.environ["AUTH_SECRET_KEY"] = "test-secret-key"
os.environ["AUTH_ADMIN_LOGIN"] = "admin"
os.environ["AUTH_ADMIN_PASSWORD"] = "eden2024!"
os.environ["AUTH_MANAGER_LOGIN"] = "manager"
os.environ["AUTH_MANAGER_PASSWORD"] = "eden2024!"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_tmp_dir, "test.sqlite")
os.environ["LOG_DIR"] = os.path.join(_tmp_dir, "log")
os.environ["LOG_PRINT"] = "0"
os.environ["LOG_PRINT_DB"] = "0"
