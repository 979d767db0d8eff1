"""
GenesisPass Smart Contract — capped identity passes with reward metadata.

The on-chain counterpart of services/pass_registry.py for an Algorand
application. Mints are paid with an atomic group
[PaymentTxn → app address, AppCallTxn mint(recipient)]; overpayment is
refunded by inner transaction. Batch awards / airdrop updates are sent as an
atomic group of single-pass calls, which the AVM applies all-or-nothing.

Methods:
    mint(recipient)                               — anyone, with payment
    claim_tokens(token_id)                        — pass holder, once
    transfer(token_id, to)                        — pass holder
    award_points(token_id, amount)                — admin
    set_access_level(token_id, level)             — admin
    set_airdrop(token_id, eligible, multiplier)   — admin, multiplier >= 100
    set_minting(flag) / set_claiming(flag)        — admin
    set_price(price)                              — admin, price > 0
    reset_mint(wallet)                            — admin
    withdraw()                                    — admin, spendable balance > 0

Global State:
    admin_address     (bytes)  — registry administrator
    minting_enabled   (uint)   — 0/1
    claim_enabled     (uint)   — 0/1
    mint_price        (uint)   — microAlgos
    next_token_id     (uint)   — starts at 1, never reused
    max_supply        (uint)
    tokens_per_pass   (uint)

Boxes:
    "p" + itob(token_id)  (58 bytes)
        [0:8] points | [8:16] access_level | [16:24] airdrop_multiplier |
        [24] tokens_claimed | [25] airdrop_eligible | [26:58] holder
    "w" + address         (16 bytes)
        [0:8] has_minted | [8:16] wallet points total
"""

from pyteal import *

# ── Contract Metadata (read by compiler) ──────────────────────────
CONTRACT_NAME = "GenesisPass"
CONTRACT_DESCRIPTION = (
    "Capped identity passes with points, access tiers, airdrop eligibility "
    "and a one-time ecosystem token claim."
)
CONTRACT_VERSION = "1.0.0"
GLOBAL_UINTS = 6   # minting_enabled, claim_enabled, mint_price, next_token_id, max_supply, tokens_per_pass
GLOBAL_BYTES = 1   # admin_address
LOCAL_UINTS = 0
LOCAL_BYTES = 0
CONTRACT_METHODS = [
    "mint", "claim_tokens", "transfer",
    "award_points", "set_access_level", "set_airdrop",
    "set_minting", "set_claiming", "set_price",
    "reset_mint", "withdraw",
]

# ── Box layout ────────────────────────────────────────────────────
PASS_BOX_SIZE = 58
POINTS_OFFSET = 0
ACCESS_OFFSET = 8
MULTIPLIER_OFFSET = 16
CLAIMED_OFFSET = 24
ELIGIBLE_OFFSET = 25
HOLDER_OFFSET = 26

WALLET_BOX_SIZE = 16
MINTED_OFFSET = 0
WALLET_POINTS_OFFSET = 8

BASE_MULTIPLIER = 100


def pass_box(token_id):
    return Concat(Bytes("p"), Itob(token_id))


def wallet_box(address):
    return Concat(Bytes("w"), address)


def read_uint(box, offset):
    return Btoi(App.box_extract(box, Int(offset), Int(8)))


def write_uint(box, offset, value):
    return App.box_replace(box, Int(offset), Itob(value))


def read_flag(box, offset):
    return Btoi(App.box_extract(box, Int(offset), Int(1)))


def write_flag(box, offset, value):
    return App.box_replace(box, Int(offset), If(value, Bytes("base16", "0x01"), Bytes("base16", "0x00")))


def assert_pass_exists(box):
    length = App.box_length(box)
    return Seq([length, Assert(length.hasValue())])


def approval_program():
    """Main approval program for the GenesisPass contract."""

    # ========== Global State Keys ==========
    admin_key = Bytes("admin_address")
    minting_key = Bytes("minting_enabled")
    claim_key = Bytes("claim_enabled")
    price_key = Bytes("mint_price")
    next_id_key = Bytes("next_token_id")
    max_supply_key = Bytes("max_supply")
    tokens_per_pass_key = Bytes("tokens_per_pass")

    # ========== Helpers ==========
    is_admin = Txn.sender() == App.globalGet(admin_key)
    token_id = ScratchVar(TealType.uint64)
    holder = ScratchVar(TealType.bytes)

    arg_token = Btoi(Txn.application_args[1])
    this_pass = pass_box(token_id.load())

    # ========== On Creation ==========
    # arg[0] = admin_address (32 bytes)
    # arg[1] = mint_price (uint64)
    # arg[2] = max_supply (uint64)
    # arg[3] = tokens_per_pass (uint64)
    on_creation = Seq([
        Assert(Txn.application_args.length() == Int(4)),
        Assert(Len(Txn.application_args[0]) == Int(32)),
        Assert(Btoi(Txn.application_args[1]) > Int(0)),
        App.globalPut(admin_key, Txn.application_args[0]),
        App.globalPut(price_key, Btoi(Txn.application_args[1])),
        App.globalPut(max_supply_key, Btoi(Txn.application_args[2])),
        App.globalPut(tokens_per_pass_key, Btoi(Txn.application_args[3])),
        App.globalPut(minting_key, Int(0)),
        App.globalPut(claim_key, Int(0)),
        App.globalPut(next_id_key, Int(1)),
        Approve(),
    ])

    # ========== mint(recipient) ==========
    # Atomic group: [PaymentTxn → app address, AppCallTxn mint(recipient)]
    payment = Gtxn[Txn.group_index() - Int(1)]
    recipient = Txn.application_args[1]
    price = App.globalGet(price_key)

    on_mint = Seq([
        Assert(App.globalGet(minting_key) == Int(1)),
        Assert(Txn.application_args.length() == Int(2)),
        Assert(Len(recipient) == Int(32)),
        Assert(Txn.group_index() > Int(0)),
        Assert(payment.type_enum() == TxnType.Payment),
        Assert(payment.receiver() == Global.current_application_address()),
        Assert(payment.amount() >= price),
        Assert(App.globalGet(next_id_key) - Int(1) < App.globalGet(max_supply_key)),

        # One mint per wallet while the flag is set
        Pop(App.box_create(wallet_box(recipient), Int(WALLET_BOX_SIZE))),
        Assert(read_uint(wallet_box(recipient), MINTED_OFFSET) == Int(0)),

        token_id.store(App.globalGet(next_id_key)),
        App.globalPut(next_id_key, token_id.load() + Int(1)),

        # Flag and metadata are written before any value leaves the app
        write_uint(wallet_box(recipient), MINTED_OFFSET, Int(1)),
        Assert(App.box_create(this_pass, Int(PASS_BOX_SIZE))),
        write_uint(this_pass, MULTIPLIER_OFFSET, Int(BASE_MULTIPLIER)),
        App.box_replace(this_pass, Int(HOLDER_OFFSET), recipient),

        If(payment.amount() > price).Then(Seq([
            InnerTxnBuilder.Begin(),
            InnerTxnBuilder.SetFields({
                TxnField.type_enum: TxnType.Payment,
                TxnField.receiver: payment.sender(),
                TxnField.amount: payment.amount() - price,
                TxnField.fee: Int(0),  # fee pooling from outer txn
            }),
            InnerTxnBuilder.Submit(),
        ])),

        # Emit log: [MINTED][recipient][token_id][price]
        Log(Concat(Bytes("MINTED"), recipient, Itob(token_id.load()), Itob(price))),
        Approve(),
    ])

    # ========== claim_tokens(token_id) ==========
    on_claim = Seq([
        Assert(App.globalGet(claim_key) == Int(1)),
        Assert(Txn.application_args.length() == Int(2)),
        token_id.store(arg_token),
        assert_pass_exists(this_pass),
        Assert(App.box_extract(this_pass, Int(HOLDER_OFFSET), Int(32)) == Txn.sender()),
        Assert(read_flag(this_pass, CLAIMED_OFFSET) == Int(0)),
        write_flag(this_pass, CLAIMED_OFFSET, Int(1)),
        Log(Concat(
            Bytes("CLAIMED"),
            Itob(token_id.load()),
            Txn.sender(),
            Itob(App.globalGet(tokens_per_pass_key)),
        )),
        Approve(),
    ])

    # ========== transfer(token_id, to) ==========
    # Metadata stays on the pass; wallet point totals are not moved.
    on_transfer = Seq([
        Assert(Txn.application_args.length() == Int(3)),
        Assert(Len(Txn.application_args[2]) == Int(32)),
        token_id.store(arg_token),
        assert_pass_exists(this_pass),
        Assert(App.box_extract(this_pass, Int(HOLDER_OFFSET), Int(32)) == Txn.sender()),
        App.box_replace(this_pass, Int(HOLDER_OFFSET), Txn.application_args[2]),
        Approve(),
    ])

    # ========== award_points(token_id, amount) ==========
    amount = Btoi(Txn.application_args[2])
    on_award_points = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(3)),
        token_id.store(arg_token),
        assert_pass_exists(this_pass),
        holder.store(App.box_extract(this_pass, Int(HOLDER_OFFSET), Int(32))),

        write_uint(this_pass, POINTS_OFFSET, read_uint(this_pass, POINTS_OFFSET) + amount),

        # Credit the wallet holding the pass right now
        Pop(App.box_create(wallet_box(holder.load()), Int(WALLET_BOX_SIZE))),
        write_uint(
            wallet_box(holder.load()),
            WALLET_POINTS_OFFSET,
            read_uint(wallet_box(holder.load()), WALLET_POINTS_OFFSET) + amount,
        ),

        # Emit log: [POINTS][token_id][amount][new total]
        Log(Concat(
            Bytes("POINTS"),
            Itob(token_id.load()),
            Itob(amount),
            Itob(read_uint(this_pass, POINTS_OFFSET)),
        )),
        Approve(),
    ])

    # ========== set_access_level(token_id, level) ==========
    on_set_access_level = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(3)),
        token_id.store(arg_token),
        assert_pass_exists(this_pass),
        write_uint(this_pass, ACCESS_OFFSET, Btoi(Txn.application_args[2])),
        Log(Concat(Bytes("ACCESS"), Itob(token_id.load()), Txn.application_args[2])),
        Approve(),
    ])

    # ========== set_airdrop(token_id, eligible, multiplier) ==========
    multiplier = Btoi(Txn.application_args[3])
    on_set_airdrop = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(4)),
        token_id.store(arg_token),
        assert_pass_exists(this_pass),
        Assert(multiplier >= Int(BASE_MULTIPLIER)),
        write_flag(this_pass, ELIGIBLE_OFFSET, Btoi(Txn.application_args[2])),
        write_uint(this_pass, MULTIPLIER_OFFSET, multiplier),
        Log(Concat(
            Bytes("AIRDROP"),
            Itob(token_id.load()),
            Txn.application_args[2],
            Txn.application_args[3],
        )),
        Approve(),
    ])

    # ========== set_minting / set_claiming / set_price ==========
    flag_arg = Btoi(Txn.application_args[1])
    on_set_minting = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(2)),
        App.globalPut(minting_key, If(flag_arg, Int(1), Int(0))),
        Log(Concat(Bytes("MINTING"), Itob(App.globalGet(minting_key)))),
        Approve(),
    ])

    on_set_claiming = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(2)),
        App.globalPut(claim_key, If(flag_arg, Int(1), Int(0))),
        Log(Concat(Bytes("CLAIMING"), Itob(App.globalGet(claim_key)))),
        Approve(),
    ])

    on_set_price = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(2)),
        Assert(Btoi(Txn.application_args[1]) > Int(0)),
        App.globalPut(price_key, Btoi(Txn.application_args[1])),
        Log(Concat(Bytes("PRICE"), Txn.application_args[1])),
        Approve(),
    ])

    # ========== reset_mint(wallet) ==========
    on_reset_mint = Seq([
        Assert(is_admin),
        Assert(Txn.application_args.length() == Int(2)),
        Assert(Len(Txn.application_args[1]) == Int(32)),
        Pop(App.box_create(wallet_box(Txn.application_args[1]), Int(WALLET_BOX_SIZE))),
        write_uint(wallet_box(Txn.application_args[1]), MINTED_OFFSET, Int(0)),
        Approve(),
    ])

    # ========== withdraw() ==========
    app_address = Global.current_application_address()
    spendable = Balance(app_address) - MinBalance(app_address)
    on_withdraw = Seq([
        Assert(is_admin),
        Assert(spendable > Int(0)),
        InnerTxnBuilder.Begin(),
        InnerTxnBuilder.SetFields({
            TxnField.type_enum: TxnType.Payment,
            TxnField.receiver: App.globalGet(admin_key),
            TxnField.amount: spendable,
            TxnField.fee: Int(0),
        }),
        InnerTxnBuilder.Submit(),
        Approve(),
    ])

    # ========== Router ==========
    method_selector = Txn.application_args[0]

    program = Cond(
        [Txn.application_id() == Int(0), on_creation],
        [Txn.on_completion() == OnComplete.DeleteApplication, Return(is_admin)],
        [Txn.on_completion() == OnComplete.UpdateApplication, Return(is_admin)],
        [Txn.on_completion() == OnComplete.OptIn, Reject()],
        [Txn.on_completion() == OnComplete.CloseOut, Reject()],
        [Txn.on_completion() == OnComplete.NoOp, Cond(
            [method_selector == Bytes("mint"), on_mint],
            [method_selector == Bytes("claim_tokens"), on_claim],
            [method_selector == Bytes("transfer"), on_transfer],
            [method_selector == Bytes("award_points"), on_award_points],
            [method_selector == Bytes("set_access_level"), on_set_access_level],
            [method_selector == Bytes("set_airdrop"), on_set_airdrop],
            [method_selector == Bytes("set_minting"), on_set_minting],
            [method_selector == Bytes("set_claiming"), on_set_claiming],
            [method_selector == Bytes("set_price"), on_set_price],
            [method_selector == Bytes("reset_mint"), on_reset_mint],
            [method_selector == Bytes("withdraw"), on_withdraw],
        )],
    )

    return program


def clear_program():
    """Clear state program — always approves."""
    return Approve()


if __name__ == "__main__":
    print("=== GenesisPass Approval Program ===")
    print(compileTeal(approval_program(), mode=Mode.Application, version=8))
    print("\n=== GenesisPass Clear State Program ===")
    print(compileTeal(clear_program(), mode=Mode.Application, version=8))
