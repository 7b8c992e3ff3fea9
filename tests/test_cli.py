import base58
import pytest
from solders.keypair import Keypair

from conftest import FakeClock, ScriptedSource
from pumpfun_launcher import cli, config
from pumpfun_launcher.create_token import LaunchResult
from pumpfun_launcher.errors import InsufficientBalanceError, StatusSourceError
from pumpfun_launcher.project_constants import MIN_REQUIRED_LAMPORTS
from pumpfun_launcher.vanity import VanityStatus, VanityWaiter


def b58(kp: Keypair) -> str:
    return base58.b58encode(bytes(kp)).decode()


class FakeCreator:
    instances = []
    balance = 50_000_000

    def __init__(self, rpc, payer, http, dry_run=False, confirm_timeout_s=60.0):
        self.payer = payer
        self.dry_run = dry_run
        self.calls = []
        FakeCreator.instances.append(self)

    @property
    def wallet_address(self):
        return str(self.payer.pubkey())

    def check_balance(self):
        if self.balance < MIN_REQUIRED_LAMPORTS:
            raise InsufficientBalanceError("Insufficient wallet balance.")
        return self.balance

    def create_token(self, token, mint_keypair=None):
        self.calls.append((token, mint_keypair))
        mint = mint_keypair or Keypair()
        return LaunchResult(
            signature="SIG1",
            mint=str(mint.pubkey()),
            vanity=mint_keypair is not None,
            dry_run=self.dry_run,
        )


@pytest.fixture
def launcher(monkeypatch):
    """Wires the CLI to a scripted status source, fake clock and fake creator."""
    FakeCreator.instances = []
    monkeypatch.setattr(FakeCreator, "balance", 50_000_000)
    monkeypatch.setattr(config, "load_dotenv", lambda *a, **kw: False)
    for name in ("HELIUS_API_KEY", "DRY_RUN", "VANITY_ENABLED", "VANITY_STATUS_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PRIVATE_KEY", b58(Keypair()))
    monkeypatch.setenv("RPC_URL", "https://rpc.test")
    monkeypatch.setattr(cli, "TokenCreator", FakeCreator)

    clock = FakeClock()
    state = {"source": ScriptedSource([])}
    monkeypatch.setattr(cli, "VanityStatusClient", lambda url: FakeStatusClient(state["source"]))
    monkeypatch.setattr(
        cli,
        "VanityWaiter",
        lambda source: VanityWaiter(source, sleep=clock.sleep, clock=clock),
    )

    def script(items, repeat_last=False):
        state["source"] = ScriptedSource(items, repeat_last=repeat_last)
        return state["source"]

    return script


class FakeStatusClient:
    def __init__(self, source):
        self.source = source

    def fetch_status(self, request):
        return self.source.fetch_status(request)

    def close(self):
        pass


def test_no_vanity_launches_without_polling(launcher, capsys):
    source = launcher([])
    assert cli.run(["-s", "moon", "--no-vanity"]) == 0

    assert source.calls == 0
    (creator,) = FakeCreator.instances
    token, mint = creator.calls[0]
    assert token.symbol == "MOON"
    assert token.name == "MOON"
    assert token.description == "MOON"
    assert mint is None
    out = capsys.readouterr().out
    assert "MOON deployed successfully!" in out
    assert "SIG1" in out


def test_vanity_disabled_by_env(launcher, monkeypatch):
    monkeypatch.setenv("VANITY_ENABLED", "false")
    source = launcher([])
    assert cli.run(["-s", "moon"]) == 0
    assert source.calls == 0


def test_waits_for_vanity_then_launches_with_it(launcher, capsys):
    vanity = Keypair()
    launcher(
        [
            VanityStatus.pending(),
            VanityStatus.ready(str(vanity.pubkey()), secret_key=b58(vanity)),
        ]
    )
    assert cli.run(["-s", "moon", "-n", "Moon Coin", "--poll-interval", "1"]) == 0

    token, mint = FakeCreator.instances[0].calls[0]
    assert token.name == "Moon Coin"
    assert mint.pubkey() == vanity.pubkey()
    assert "with vanity address" in capsys.readouterr().out


def test_vanity_timeout_exits_2_without_launch(launcher):
    launcher([VanityStatus.pending()], repeat_last=True)
    code = cli.run(["-s", "moon", "--poll-interval", "2", "--vanity-timeout", "5"])
    assert code == cli.EXIT_VANITY_TIMEOUT
    assert FakeCreator.instances[0].calls == []


def test_poll_error_exits_1(launcher):
    launcher([StatusSourceError("unreachable")] * 4)
    assert cli.run(["-s", "moon", "--poll-interval", "1"]) == 1
    assert FakeCreator.instances[0].calls == []


def test_ready_without_secret_exits_1(launcher):
    launcher([VanityStatus.ready("Abc123pump")])
    assert cli.run(["-s", "moon"]) == 1
    assert FakeCreator.instances[0].calls == []


def test_ready_with_mismatched_secret_exits_1(launcher):
    launcher([VanityStatus.ready(str(Keypair().pubkey()), secret_key=b58(Keypair()))])
    assert cli.run(["-s", "moon"]) == 1


def test_dry_run_banner(launcher, monkeypatch, capsys):
    monkeypatch.setenv("DRY_RUN", "true")
    launcher([])
    assert cli.run(["-s", "moon", "--no-vanity"]) == 0
    assert "DRY RUN" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["-s", "ABCDEFGHIJK", "--no-vanity"],
        ["-s", "moon", "-n", "x" * 33, "--no-vanity"],
        ["-s", "   ", "--no-vanity"],
        ["-s", "\u00c9" * 6, "--no-vanity"],
        ["-s", "moon", "-n", "\U0001F680" * 10, "--no-vanity"],
    ],
)
def test_validation_errors_exit_1(launcher, argv):
    launcher([])
    assert cli.run(argv) == 1
    assert FakeCreator.instances == []


def test_missing_config_exits_1(launcher, monkeypatch):
    monkeypatch.delenv("PRIVATE_KEY")
    assert cli.run(["-s", "moon", "--no-vanity"]) == 1


@pytest.mark.parametrize("flag", ["--poll-interval", "--vanity-timeout"])
def test_non_positive_durations_rejected(flag):
    with pytest.raises(SystemExit) as exc:
        cli.build_parser().parse_args(["-s", "moon", flag, "0"])
    assert exc.value.code == 2


def test_short_balance_fails_before_vanity_wait(launcher, monkeypatch):
    monkeypatch.setattr(FakeCreator, "balance", 0)
    source = launcher([VanityStatus.pending()] * 20 + [VanityStatus.ready("Abc123pump")])

    assert cli.run(["-s", "moon", "--poll-interval", "30"]) == 1
    assert source.calls == 0
    assert FakeCreator.instances[0].calls == []


def test_multibyte_name_within_byte_limit_accepted(launcher):
    launcher([])
    # 8 rockets = 32 bytes
    assert cli.run(["-s", "moon", "-n", "\U0001F680" * 8, "--no-vanity"]) == 0


def test_vanity_job_help_documents_status_payload():
    help_text = cli.build_parser().format_help()
    assert "/status/<job>" in help_text
    assert "secret_key" in help_text
