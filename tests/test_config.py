from pathlib import Path

from modules.core.config import ensure_project_dir, load_config, resolve_project_path
from modules.core.knowledge import load_knowledge_base


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_yaml(tmp_path, monkeypatch):
    for name in ("GROQ_API_KEY", "ELEVENLABS_API_KEY", "VOICE_ID", "PORT"):
        monkeypatch.delenv(name, raising=False)
    config = load_config(tmp_path / "configs" / "config.yaml", env_file=tmp_path / "none.env")
    assert config.server.port == 3000
    assert config.llm.model == "llama3-8b-8192"
    assert config.tts.synthesis_timeout_s == 10.0
    assert config.credentials.groq_api_key == ""
    assert config.project_root == tmp_path.resolve()


def test_yaml_overrides_are_merged(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    path = _write(tmp_path / "configs" / "config.yaml", "llm:\n  model: llama-3.1-8b-instant\ntts:\n  synthesis_timeout_s: 3\n")
    config = load_config(path, env_file=tmp_path / "none.env")
    assert config.llm.model == "llama-3.1-8b-instant"
    assert config.llm.reply_max_tokens == 1000
    assert config.tts.synthesis_timeout_s == 3


def test_credentials_from_env_file(tmp_path, monkeypatch):
    # load_dotenv writes into os.environ; register the keys so monkeypatch restores them.
    for name in ("GROQ_API_KEY", "ELEVENLABS_API_KEY", "VOICE_ID"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    env_file = _write(tmp_path / ".env", "GROQ_API_KEY=gsk-file\nELEVENLABS_API_KEY=el-file\nVOICE_ID=v-file\n")
    monkeypatch.setenv("VOICE_ID", "v-shell")
    config = load_config(tmp_path / "configs" / "config.yaml", env_file=env_file)
    assert config.credentials.groq_api_key == "gsk-file"
    assert config.credentials.elevenlabs_api_key == "el-file"
    assert config.credentials.voice_id == "v-shell"


def test_port_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    config = load_config(tmp_path / "configs" / "config.yaml", env_file=tmp_path / "none.env")
    assert config.server.port == 8080


def test_project_paths(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    config = load_config(tmp_path / "configs" / "config.yaml", env_file=tmp_path / "none.env")
    assert resolve_project_path(config, "audios") == str(tmp_path.resolve() / "audios")
    created = ensure_project_dir(config, "audios")
    assert Path(created).is_dir()


def test_knowledge_base_loading(tmp_path):
    kb = load_knowledge_base(_write(tmp_path / "kb.js", "export const kb = 'IDMS';"))
    assert kb.loaded
    assert "IDMS" in kb.text

    missing = load_knowledge_base(tmp_path / "missing.js")
    assert not missing.loaded
    assert missing.text == ""
