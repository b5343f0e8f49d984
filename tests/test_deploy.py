"""
Unit Tests for Deployment Entrypoint
"""

import pytest
from unittest.mock import Mock, AsyncMock, patch
from loguru import logger

import deploy
from blockchain.contract_factory import DeployedContract


@pytest.fixture(autouse=True)
def clean_logging(monkeypatch):
    """Default log level, drop sinks bound to captured streams afterwards"""
    monkeypatch.delenv('LOG_LEVEL', raising=False)
    monkeypatch.delenv('DEPLOY_LOG_FILE', raising=False)
    yield
    logger.remove()


@pytest.fixture
def handle():
    """Deployed contract handle"""
    return DeployedContract(
        name='Kyc',
        address='0x5FbDB2315678afecb367f032d93F642f64180aa3',
        transaction_hash='0x' + 'ab' * 32,
        deployer='0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266',
        contract=Mock()
    )


@pytest.fixture
def factory(handle):
    """Contract factory with successful deploy"""
    factory = Mock()
    factory.deploy = AsyncMock(return_value=handle)
    return factory


class TestRun:
    """Test exit codes and output streams"""

    def test_success_exits_zero(self, factory, capsys):
        """Test successful deployment prints handle to stdout"""
        with patch('deploy.get_contract_factory', AsyncMock(return_value=factory)):
            exit_code = deploy.run()

        captured = capsys.readouterr()

        assert exit_code == 0
        assert "Contract object: DeployedContract(name='Kyc', address='0x5FbDB2315678afecb367f032d93F642f64180aa3'" in captured.out

    def test_deploy_failure_exits_one(self, factory, capsys):
        """Test rejected deploy is written to stderr"""
        factory.deploy = AsyncMock(side_effect=RuntimeError("insufficient funds for gas"))

        with patch('deploy.get_contract_factory', AsyncMock(return_value=factory)):
            exit_code = deploy.run()

        captured = capsys.readouterr()

        assert exit_code == 1
        assert "insufficient funds for gas" in captured.err
        assert "Contract object" not in captured.out

    def test_resolution_failure_exits_one(self, capsys):
        """Test missing artifact is reported and exit code is 1"""
        resolve = AsyncMock(side_effect=FileNotFoundError("Artifact for contract Kyc not found"))

        with patch('deploy.get_contract_factory', resolve):
            exit_code = deploy.run()

        captured = capsys.readouterr()

        assert exit_code == 1
        assert "FileNotFoundError: Artifact for contract Kyc not found" in captured.err
        assert captured.out == ''

    def test_no_output_before_deploy_completes(self, handle, capsys):
        """Test nothing is written until resolution and deploy resolve"""
        outputs_during_calls = []

        async def resolve(name):
            outputs_during_calls.append(capsys.readouterr())
            return factory

        async def do_deploy():
            outputs_during_calls.append(capsys.readouterr())
            return handle

        factory = Mock()
        factory.deploy = do_deploy

        with patch('deploy.get_contract_factory', resolve):
            assert deploy.run() == 0

        assert len(outputs_during_calls) == 2
        for captured in outputs_during_calls:
            assert captured.out == ''
            assert captured.err == ''

        assert 'Contract object' in capsys.readouterr().out

    def test_debug_log_file(self, tmp_path, monkeypatch, capsys):
        """Test DEPLOY_LOG_FILE receives debug records and the failure"""
        for var in ('DEPLOY_NETWORK', 'DEPLOY_RPC_URL', 'DEPLOYER_PRIVATE_KEY', 'DEPLOY_TX_TIMEOUT'):
            monkeypatch.delenv(var, raising=False)

        log_file = tmp_path / 'deploy.log'
        monkeypatch.setenv('DEPLOY_LOG_FILE', str(log_file))
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')

        w3 = Mock()
        w3.is_connected = AsyncMock(return_value=False)

        with patch('blockchain.contract_factory.AsyncWeb3', Mock(return_value=w3)):
            exit_code = deploy.run()

        # closes the file sink
        logger.remove()

        contents = log_file.read_text()
        captured = capsys.readouterr()

        assert exit_code == 1
        assert 'DEBUG    | utils.network_config:load - Network config loaded: Hardhat Localhost' in contents
        assert 'ERROR    | deploy:run - ConnectionError: Failed to connect to Hardhat Localhost' in contents
        assert 'Network config loaded' in captured.err
        assert captured.out == ''

    def test_error_level_hides_success(self, factory, monkeypatch, capsys):
        """Test LOG_LEVEL=ERROR keeps stderr quiet on success"""
        monkeypatch.setenv('LOG_LEVEL', 'ERROR')

        with patch('deploy.get_contract_factory', AsyncMock(return_value=factory)):
            exit_code = deploy.run()

        captured = capsys.readouterr()

        assert exit_code == 0
        assert 'Contract object' in captured.out
        assert captured.err == ''

    def test_default_level_logs_success(self, factory, capsys):
        with patch('deploy.get_contract_factory', AsyncMock(return_value=factory)):
            deploy.run()

        assert 'Kyc deployed at 0x5FbDB2315678afecb367f032d93F642f64180aa3' in capsys.readouterr().err


class TestMain:
    """Test resolve -> deploy sequence"""

    @pytest.mark.asyncio
    async def test_single_resolution_and_deploy(self, factory, handle, capsys):
        """Test exactly one resolution and one deploy without constructor args"""
        resolve = AsyncMock(return_value=factory)

        with patch('deploy.get_contract_factory', resolve):
            result = await deploy.main()

        assert result is handle
        resolve.assert_awaited_once_with('Kyc')
        factory.deploy.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_deploy_not_called_when_resolution_fails(self, factory):
        """Test failed resolution never reaches deploy"""
        resolve = AsyncMock(side_effect=ConnectionError("Failed to connect"))

        with patch('deploy.get_contract_factory', resolve):
            with pytest.raises(ConnectionError):
                await deploy.main()

        resolve.assert_awaited_once()
        factory.deploy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_deploy_not_retried(self, factory):
        """Test deploy failure propagates after a single attempt"""
        factory.deploy = AsyncMock(side_effect=ValueError("execution reverted"))
        resolve = AsyncMock(return_value=factory)

        with patch('deploy.get_contract_factory', resolve):
            with pytest.raises(ValueError, match="execution reverted"):
                await deploy.main()

        assert resolve.await_count == 1
        assert factory.deploy.await_count == 1


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
