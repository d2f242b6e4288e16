# -*- coding: utf-8 -*-
"""English (en) strings."""

LANG = {
    # User commands
    "start.welcome": (
        "Hey <b>{first_name}</b>! 👋\n"
        "Share your personal invite link to grow <b>{channel}</b> and earn ZIP rewards.\n\n"
        "🔗 Your invite link:\n{link}\n\n"
        "💡 Every {step} invites unlocks a new reward ZIP.\n"
        "Use /myinvites to see your progress, /rewards to view unlocked rewards, /top for the leaderboard."
    ),
    "link.your_link": "🔗 Your invite link:\n{link}",
    "link.unavailable": "⚠️ Invite links are temporarily unavailable. Please try again later.",
    "myinvites.text": (
        "👤 {name}\n"
        "You have <b>{invites}</b> invites.\n"
        "Next reward at <b>{next_threshold}</b> (only {remaining} to go)."
    ),
    "rewards.none": "You haven’t unlocked any rewards yet. Keep inviting! 🚀",
    "rewards.unlocked": "Unlocked rewards: {rewards}",
    "top.empty": "No data yet.",
    "top.title": "🏆 Top Inviters:",
    "top.line": "{position}. {name} — {invites}",
    "help.text": (
        "🤖 Commands\n\n"
        "Users:\n"
        "  /start        → get your personal link + intro\n"
        "  /link         → show your invite link\n"
        "  /myinvites    → your invite count + next reward progress\n"
        "  /rewards      → your unlocked rewards\n"
        "  /top          → leaderboard\n\n"
        "Admin:\n"
        "  /stats                → overall stats\n"
        "  /user <id|@username>  → inspect a user\n"
        "  /rewardslist          → list all rewards\n"
        "  /reward <id> [thr]    → save next uploaded ZIP as reward\n"
        "  /cancel               → cancel a pending reward upload\n"
        "  /broadcast <message>  → DM all users\n"
    ),

    # Notifications
    "notify.new_member": "🎉 New member joined via your link! Total invites: {invites}",

    # Admin
    "admin.stats": (
        "📊 Stats\n"
        "Users: {total_users}\n"
        "Referrals (unique joins): {total_referrals}\n"
        "Active inviters: {active_inviters}\n"
        "Reward tiers: {total_rewards}"
    ),
    "admin.user_usage": "Usage: /user <id|@username>",
    "admin.user_not_found": "User not found.",
    "admin.user_info": (
        "👤 {name}\n"
        "UserId: {telegram_id}\n"
        "Invites: {invites}\n"
        "Claimed: {claimed}\n"
        "Invite link: {link}\n"
        "Invited users: {invited_users}"
    ),
    "admin.none": "none",
    "admin.link_not_generated": "not generated",
    "admin.rewards_empty": "No rewards saved.",
    "admin.rewards_title": "🎁 Rewards:",
    "admin.rewards_line": "#{reward_id} → threshold {threshold}",
    "admin.reward_usage": "Usage: /reward <id> [threshold]",
    "admin.reward_send_zip": "Send the ZIP file for reward #{reward_id} (threshold {threshold}).",
    "admin.reward_need_zip": "Please send a ZIP file.",
    "admin.reward_saved": "Saved reward #{reward_id} at threshold {threshold}.",
    "admin.upload_cancelled": "Reward upload cancelled.",
    "admin.nothing_to_cancel": "No reward upload in progress.",
    "admin.broadcast_usage": "Usage: /broadcast <message>",
    "admin.broadcast_started": "Broadcast started…",

    # Errors
    "errors.service_unavailable": "⚠️ Service temporarily unavailable. Please try again later.",
    "errors.generic": "⚠️ Something went wrong. Please try again later.",
}
