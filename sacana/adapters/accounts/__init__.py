from sacana.adapters.accounts.linux import LinuxAccountManager

__all__ = ["LinuxAccountManager"]
